"""
Variant factory and query runner.

The factory maps a configuration name to a search strategy plus the reader
that decodes its output. The Runner drives queries through that pair and
checks each result against an exact reference:
- Path results: squared error between result and Dijkstra distance
- Ranked results: recall@k (plus precision@k and reciprocal rank) against
  Dijkstra or brute-force rankings

Queries are independent, so batches run on a thread pool; each query builds
its own frontiers and arrays and only reads the shared Graph.
"""

import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from beamwalk.config import SearchConfig, get_default_config
from beamwalk.errors import InvalidNumeric, UnknownVariant
from beamwalk.metrics import (
    checked_squared_error,
    compute_ground_truth_brute_force,
    compute_precision_at_k,
    compute_recall_at_k,
    compute_reciprocal_rank,
    dijkstra_reference,
    shortest_path_ranking,
)
from beamwalk.search.beam import BeamSearch
from beamwalk.search.graph import Graph
from beamwalk.search.greedy import GreedyWalk
from beamwalk.search.results import PathResult, Query, Result, ResultReader
from beamwalk.search.ubmk import InnerProductBenchmark

logger = logging.getLogger(__name__)


@dataclass
class Variant:
    """A named (strategy, reader) pair."""

    name: str
    strategy: object
    reader: ResultReader
    needs_embedding: bool = False


def _greedy_walk(config: SearchConfig) -> Variant:
    strategy = GreedyWalk(metric=config.metric, max_steps=config.max_steps)
    return Variant("greedy_walk", strategy, ResultReader())


def _beam_search(config: SearchConfig) -> Variant:
    strategy = BeamSearch(
        metric=config.metric, beam_width=config.beam_width, max_steps=config.max_steps
    )
    return Variant("beam_search", strategy, ResultReader())


def _iproduct_ubmk(config: SearchConfig) -> Variant:
    strategy = InnerProductBenchmark(iterations=config.ubmk_iterations, metric=config.metric)
    return Variant("iproduct_ubmk", strategy, ResultReader(), needs_embedding=True)


VARIANTS: Dict[str, Callable[[SearchConfig], Variant]] = {
    "greedy_walk": _greedy_walk,
    "beam_search": _beam_search,
    "iproduct_ubmk": _iproduct_ubmk,
}


def make_variant(name: str, config: Optional[SearchConfig] = None) -> Variant:
    """
    Build the strategy/reader pair registered under a name.

    Raises:
        UnknownVariant: If no variant is registered under `name`
    """
    if name not in VARIANTS:
        raise UnknownVariant(name, VARIANTS.keys())
    return VARIANTS[name](config if config is not None else get_default_config())


@dataclass
class QueryReport:
    """Outcome of one query compared against its reference."""

    index: int
    query: Query
    result: Optional[Result]
    match: bool
    error: float = 0.0  # squared distance error (path results)
    recall: Optional[float] = None  # recall@k (ranked results)
    precision: Optional[float] = None
    reciprocal_rank: Optional[float] = None
    elapsed: float = 0.0
    failure: Optional[str] = None


@dataclass
class BatchReport:
    """Aggregate of per-query reports, ordered by query index."""

    variant: str
    reports: List[QueryReport] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def num_matches(self) -> int:
        return sum(1 for r in self.reports if r.match)

    @property
    def passed(self) -> bool:
        return all(r.match for r in self.reports)

    @property
    def total_sse(self) -> float:
        return float(sum(r.error for r in self.reports))

    @property
    def mean_recall(self) -> Optional[float]:
        recalls = [r.recall for r in self.reports if r.recall is not None]
        if not recalls:
            return None
        return float(np.mean(recalls))

    @property
    def mean_reciprocal_rank(self) -> Optional[float]:
        ranks = [r.reciprocal_rank for r in self.reports if r.reciprocal_rank is not None]
        if not ranks:
            return None
        return float(np.mean(ranks))

    def summary(self) -> Dict[str, object]:
        return {
            "variant": self.variant,
            "queries": len(self.reports),
            "matches": self.num_matches,
            "passed": self.passed,
            "total_sse": self.total_sse,
            "mean_recall": self.mean_recall,
            "mean_reciprocal_rank": self.mean_reciprocal_rank,
            "elapsed": self.elapsed,
        }


class Runner:
    """
    Runs queries against one graph with one configured variant.

    The variant is resolved in the constructor, so an unknown name fails with
    UnknownVariant before the graph is read.
    """

    def __init__(self, graph: Graph, config: Optional[SearchConfig] = None) -> None:
        """
        Args:
            graph: Read-only graph shared by every query
            config: Search configuration (default: get_default_config())
        """
        self.config = config if config is not None else get_default_config()
        self.variant = make_variant(self.config.variant, self.config)
        self.graph = graph

    def validate(self, query: Query) -> None:
        """
        Check a query against the graph before any traversal.

        Raises:
            OutOfRange: If root or goal is not a vertex of the graph
            ValueError: If a similarity query cannot be served by this graph
        """
        self.graph.check_vertex(query.root)
        if query.goal is not None:
            self.graph.check_vertex(query.goal)

        if self.variant.needs_embedding and not query.is_similarity:
            raise ValueError(f"Variant {self.variant.name!r} needs a query embedding")

        if query.is_similarity:
            if not self.graph.has_vectors:
                raise ValueError("Similarity query on a graph without vertex vectors")
            if len(query.embedding) != self.graph.dimension:
                raise ValueError(
                    f"Query dimension {len(query.embedding)} doesn't match "
                    f"graph dimension {self.graph.dimension}"
                )

    def search(self, query: Query) -> Result:
        """Run the strategy and decode its output, without comparing."""
        self.validate(query)
        raw = self.variant.strategy.search(self.graph, query)
        return self.variant.reader.decode(raw, query.k)

    def run(self, query: Query, index: int = 0) -> QueryReport:
        """
        Search one query and compare it against the exact reference.

        Structural errors propagate; numeric failures become a mismatch.
        """
        self.validate(query)
        return self._run_validated(query, index)

    def run_batch(self, queries: Sequence[Query]) -> BatchReport:
        """
        Run independent queries, possibly in parallel.

        Every query is validated first, so a malformed query aborts the batch
        before any traversal. Reports come back in query order regardless of
        completion order.
        """
        for query in queries:
            self.validate(query)

        logger.info("Running %d queries with %s (workers=%d)",
                    len(queries), self.variant.name, self.config.workers)

        start = time.perf_counter()
        reports: List[Optional[QueryReport]] = [None] * len(queries)

        if self.config.workers == 1 or len(queries) <= 1:
            for index, query in enumerate(queries):
                reports[index] = self._run_validated(query, index)
        else:
            with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
                futures = {
                    pool.submit(self._run_validated, query, index): index
                    for index, query in enumerate(queries)
                }
                for future in as_completed(futures):
                    reports[futures[future]] = future.result()

        batch = BatchReport(self.variant.name, reports, time.perf_counter() - start)
        logger.info("Finished %s: %d/%d matches in %.3fs",
                    self.variant.name, batch.num_matches, len(queries), batch.elapsed)
        return batch

    def _run_validated(self, query: Query, index: int) -> QueryReport:
        start = time.perf_counter()
        try:
            raw = self.variant.strategy.search(self.graph, query)
            result = self.variant.reader.decode(raw, query.k)
            report = self._compare(query, result, index)
        except InvalidNumeric as exc:
            report = QueryReport(
                index, query, None, match=False, error=math.inf, failure=str(exc)
            )
        report.elapsed = time.perf_counter() - start

        if report.match:
            logger.debug("Query %d matched (error=%.3g, recall=%s)",
                         index, report.error, report.recall)
        else:
            logger.warning("Query %d mismatched (error=%.3g, recall=%s%s)",
                           index, report.error, report.recall,
                           f", {report.failure}" if report.failure else "")
        return report

    def _compare(self, query: Query, result: Result, index: int) -> QueryReport:
        if isinstance(result, PathResult):
            reference, _ = dijkstra_reference(self.graph, query.root)
            error = checked_squared_error([result.distance], [reference[result.target]])
            match = error <= self.config.sse_tolerance
            return QueryReport(index, query, result, match=match, error=error)

        truth_ids = self._reference_ranking(query)
        recall = compute_recall_at_k(result.ids, truth_ids, k=query.k)
        if not truth_ids:
            # Nothing to find (e.g. an empty reachable set) is a trivial match
            recall = 1.0 if not result.ids else 0.0
        match = recall >= self.config.min_recall
        return QueryReport(
            index, query, result, match=match, recall=recall,
            precision=compute_precision_at_k(result.ids, truth_ids, k=query.k),
            reciprocal_rank=compute_reciprocal_rank(result.ids, truth_ids),
        )

    def _reference_ranking(self, query: Query) -> List[int]:
        if query.is_similarity:
            ids, _ = compute_ground_truth_brute_force(
                query.embedding, self.graph.vectors, k=query.k, metric=self.config.metric
            )
            return ids

        reference, _ = dijkstra_reference(self.graph, query.root)
        ids, _ = shortest_path_ranking(reference, k=query.k)
        return ids

