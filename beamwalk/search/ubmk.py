"""
Inner-product micro-benchmark.

Scores the query against every vertex vector, repeated `iterations` times so
the per-query time reflects raw scoring throughput. The ranking it produces
is exact, which makes it a baseline for the graph-based strategies.
"""

from beamwalk.search.distance import Metric, batch_scores, metric_ordering
from beamwalk.search.frontier import BoundedFrontier, Candidate
from beamwalk.search.graph import Graph
from beamwalk.search.results import Query, RankedOutput, SearchStatus


class InnerProductBenchmark:
    """Exhaustive scan over all vertex vectors."""

    name = "iproduct_ubmk"

    def __init__(self, iterations: int = 100, metric: Metric = Metric.INNER_PRODUCT) -> None:
        if iterations < 1:
            raise ValueError(f"iterations must be >= 1, got {iterations}")
        self.iterations = iterations
        self.metric = Metric(metric)

    def search(self, graph: Graph, query: Query) -> RankedOutput:
        if not query.is_similarity or not graph.has_vectors:
            raise ValueError("iproduct_ubmk needs a query embedding and vertex vectors")
        graph.check_vertex(query.root)
        if query.goal is not None:
            graph.check_vertex(query.goal)

        for _ in range(self.iterations):
            scores = batch_scores(query.embedding, graph.vectors, self.metric)

        ordering = metric_ordering(self.metric)
        top = BoundedFrontier(query.k, ordering)
        for vertex, score in enumerate(scores):
            top.push(Candidate(vertex, float(score)))

        return RankedOutput(
            candidates=top.sorted(),
            ordering=ordering,
            status=SearchStatus.EXHAUSTED,
            steps=self.iterations,
        )
