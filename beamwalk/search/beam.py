"""
Beam-limited best-first search.

BeamSearch keeps a BoundedFrontier of at most `beam_width` unexplored
candidates. Each step pops the best one, marks it expanded, and pushes its
neighbors; the frontier evicts the worst entries when it overflows. The
beam width trades accuracy for work:
- beam_width = 1 behaves like a greedy walk
- beam_width >= V never evicts, so the search is exhaustive best-first
  (Dijkstra in shortest-path mode, exact top-k on a connected graph in
  similarity mode)

Two modes:
- Similarity (query has an embedding): candidates are scored against the
  query. Every discovered vertex also goes into a results frontier of
  capacity max(beam_width, k), which becomes the ranked answer.
- Shortest path (no embedding): candidates carry path distances. With a goal
  the search stops when the goal is popped and returns distance/predecessor
  arrays; without one, settled vertices form a ranked answer.

Every run stops after max_steps expansions (default V).
"""

import logging
from typing import Optional, Set

import numpy as np

from beamwalk.errors import CapacityExceeded, InvalidNumeric
from beamwalk.search.distance import Metric, Ordering, batch_scores, metric_ordering
from beamwalk.search.frontier import BoundedFrontier, Candidate
from beamwalk.search.graph import Graph
from beamwalk.search.results import (
    NO_PREDECESSOR,
    PathOutput,
    Query,
    RankedOutput,
    RawOutput,
    SearchStatus,
)

logger = logging.getLogger(__name__)


class BeamSearch:
    """Multi-candidate search with a bounded frontier."""

    name = "beam_search"

    def __init__(
        self,
        metric: Metric = Metric.INNER_PRODUCT,
        beam_width: int = 16,
        max_steps: Optional[int] = None,
    ) -> None:
        """
        Args:
            metric: Similarity metric for queries that carry an embedding
            beam_width: Default frontier capacity when the query does not set one
            max_steps: Expansion cap (None means the graph's vertex count)
        """
        if beam_width < 1:
            raise CapacityExceeded(f"beam_width must be >= 1, got {beam_width}")

        self.metric = Metric(metric)
        self.beam_width = beam_width
        self.max_steps = max_steps

    def _step_limit(self, graph: Graph) -> int:
        if self.max_steps is not None:
            return self.max_steps
        return max(graph.num_vertices, 1)

    def search(self, graph: Graph, query: Query) -> RawOutput:
        """Run beam search for one query; the graph is only read."""
        beam_width = query.beam_width if query.beam_width is not None else self.beam_width
        if beam_width < 1:
            raise CapacityExceeded(f"beam_width must be >= 1, got {beam_width}")

        if query.is_similarity:
            if not graph.has_vectors:
                raise ValueError("Similarity search needs a graph with vertex vectors")
            return self._search_similarity(graph, query, beam_width)
        return self._search_shortest_path(graph, query, beam_width)

    def _search_similarity(self, graph: Graph, query: Query, beam_width: int) -> RankedOutput:
        root = graph.check_vertex(query.root)
        if query.goal is not None:
            graph.check_vertex(query.goal)
        ordering = metric_ordering(self.metric)

        frontier = BoundedFrontier(beam_width, ordering)
        results = BoundedFrontier(max(beam_width, query.k), ordering)

        root_score = batch_scores(query.embedding, graph.vectors[[root]], self.metric)[0]
        seed = Candidate(root, float(root_score))
        frontier.push(seed)
        results.push(seed)
        discovered: Set[int] = {root}

        steps = 0
        limit = self._step_limit(graph)
        status = SearchStatus.EXHAUSTED

        while not frontier.is_empty():
            if steps >= limit:
                status = SearchStatus.STEP_LIMIT
                break

            current = frontier.pop_best()
            steps += 1
            if current.vertex == query.goal:
                status = SearchStatus.GOAL_REACHED
                break

            fresh = [int(n) for n in graph.neighbor_ids(current.vertex) if int(n) not in discovered]
            if not fresh:
                continue

            scores = batch_scores(query.embedding, graph.vectors[fresh], self.metric)
            for neighbor, score in zip(fresh, scores):
                if neighbor in discovered:
                    continue
                discovered.add(neighbor)
                candidate = Candidate(neighbor, float(score))
                frontier.push(candidate)
                results.push(candidate)

        logger.debug("beam similarity root=%d width=%d status=%s steps=%d discovered=%d",
                     root, beam_width, status.value, steps, len(discovered))

        return RankedOutput(candidates=results.sorted(), ordering=ordering, status=status, steps=steps)

    def _search_shortest_path(self, graph: Graph, query: Query, beam_width: int) -> RawOutput:
        root = graph.check_vertex(query.root)
        goal = query.goal
        if goal is not None:
            graph.check_vertex(goal)

        distances = np.full(graph.num_vertices, np.inf, dtype=np.float32)
        predecessors = np.full(graph.num_vertices, NO_PREDECESSOR, dtype=np.int32)
        distances[root] = 0.0
        predecessors[root] = root

        frontier = BoundedFrontier(beam_width, Ordering.MIN)
        frontier.push(Candidate(root, 0.0))
        settled = BoundedFrontier(max(beam_width, query.k), Ordering.MIN)
        visited: Set[int] = set()

        steps = 0
        limit = self._step_limit(graph)
        status = SearchStatus.EXHAUSTED
        terminal = root

        while not frontier.is_empty():
            if steps >= limit:
                status = SearchStatus.STEP_LIMIT
                break

            current = frontier.pop_best()
            if current.vertex in visited:
                continue

            steps += 1
            visited.add(current.vertex)
            settled.push(current)
            terminal = current.vertex

            if current.vertex == goal:
                status = SearchStatus.GOAL_REACHED
                break

            d_current = distances[current.vertex]
            for neighbor, weight in zip(graph.neighbor_ids(current.vertex),
                                        graph.edge_weights(current.vertex)):
                neighbor = int(neighbor)
                if neighbor in visited:
                    continue

                candidate = np.float32(d_current + weight)
                if np.isnan(candidate):
                    raise InvalidNumeric(f"NaN path distance at vertex {neighbor}")
                if candidate < distances[neighbor]:
                    distances[neighbor] = candidate
                    predecessors[neighbor] = current.vertex
                    # Replace the stale entry so the frontier holds one per vertex
                    frontier.discard(neighbor)
                    frontier.push(Candidate(neighbor, float(candidate)))

        logger.debug("beam shortest-path root=%d goal=%s width=%d status=%s steps=%d",
                     root, goal, beam_width, status.value, steps)

        if goal is None:
            return RankedOutput(
                candidates=settled.sorted(), ordering=Ordering.MIN, status=status, steps=steps
            )

        return PathOutput(
            root=root,
            goal=goal,
            terminal=terminal,
            distances=distances,
            predecessors=predecessors,
            status=status,
            steps=steps,
        )
