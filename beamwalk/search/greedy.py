"""
Greedy single-path search.

GreedyWalk follows one vertex at a time and never backtracks:

Shortest-path mode (no query embedding):
1. distance[root] = 0, every other distance = +inf
2. At `current`, relax every outgoing edge that improves a neighbor's distance
3. Move to the best-improving neighbor (smallest new distance)
4. Stop when the goal is current (GOAL_REACHED) or nothing relaxed (CONVERGED)

Similarity mode (query embedding given):
1. Score root against the query
2. Move to the best-scoring neighbor while it beats the current vertex
3. Stop when no neighbor improves (CONVERGED) or the goal is current

Both modes stop after max_steps expansions (default V) with STEP_LIMIT, so a
walk can never loop forever. On list-shaped graphs the relaxation walk is
exact; on general graphs it is a cheap approximation and BeamSearch should
be used instead.
"""

import logging
from typing import Optional

import numpy as np

from beamwalk.search.distance import Metric, batch_scores, metric_ordering
from beamwalk.search.frontier import BoundedFrontier, Candidate, rank_key
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


class GreedyWalk:
    """Single-candidate greedy traversal."""

    name = "greedy_walk"

    def __init__(self, metric: Metric = Metric.INNER_PRODUCT, max_steps: Optional[int] = None) -> None:
        """
        Args:
            metric: Similarity metric for queries that carry an embedding
            max_steps: Expansion cap (None means the graph's vertex count)
        """
        self.metric = Metric(metric)
        self.max_steps = max_steps

    def _step_limit(self, graph: Graph) -> int:
        if self.max_steps is not None:
            return self.max_steps
        return max(graph.num_vertices, 1)

    def search(self, graph: Graph, query: Query) -> RawOutput:
        """Run the walk for one query; the graph is only read."""
        if query.is_similarity:
            if not graph.has_vectors:
                raise ValueError("Similarity search needs a graph with vertex vectors")
            return self._walk_similarity(graph, query)
        return self._walk_relaxation(graph, query)

    def _walk_relaxation(self, graph: Graph, query: Query) -> PathOutput:
        root = graph.check_vertex(query.root)
        goal = query.goal
        if goal is not None:
            graph.check_vertex(goal)

        distances = np.full(graph.num_vertices, np.inf, dtype=np.float32)
        predecessors = np.full(graph.num_vertices, NO_PREDECESSOR, dtype=np.int32)
        distances[root] = 0.0
        predecessors[root] = root

        current = root
        steps = 0
        limit = self._step_limit(graph)
        status = SearchStatus.STEP_LIMIT

        while steps < limit:
            if current == goal:
                status = SearchStatus.GOAL_REACHED
                break

            steps += 1
            d_current = distances[current]
            next_vertex = current
            next_distance = np.float32(np.inf)

            for neighbor, weight in zip(graph.neighbor_ids(current), graph.edge_weights(current)):
                candidate = np.float32(d_current + weight)
                if candidate < distances[neighbor]:
                    distances[neighbor] = candidate
                    predecessors[neighbor] = current
                    if candidate < next_distance or (
                        candidate == next_distance and neighbor < next_vertex
                    ):
                        next_vertex = int(neighbor)
                        next_distance = candidate

            if next_vertex == current:
                status = SearchStatus.CONVERGED
                break
            current = next_vertex
        else:
            # Cap reached, but the last move may have landed on the goal
            if current == goal:
                status = SearchStatus.GOAL_REACHED

        logger.debug("greedy relaxation root=%d goal=%s status=%s steps=%d",
                     root, goal, status.value, steps)

        return PathOutput(
            root=root,
            goal=goal,
            terminal=current,
            distances=distances,
            predecessors=predecessors,
            status=status,
            steps=steps,
        )

    def _walk_similarity(self, graph: Graph, query: Query) -> RankedOutput:
        root = graph.check_vertex(query.root)
        if query.goal is not None:
            graph.check_vertex(query.goal)
        ordering = metric_ordering(self.metric)
        seen = BoundedFrontier(query.k, ordering)

        root_score = batch_scores(query.embedding, graph.vectors[[root]], self.metric)[0]
        current = Candidate(root, float(root_score))
        seen.push(current)
        scored = {root}

        steps = 0
        limit = self._step_limit(graph)
        status = SearchStatus.STEP_LIMIT

        while steps < limit:
            if current.vertex == query.goal:
                status = SearchStatus.GOAL_REACHED
                break

            steps += 1
            neighbor_ids = graph.neighbor_ids(current.vertex)
            if len(neighbor_ids) == 0:
                status = SearchStatus.CONVERGED
                break

            scores = batch_scores(query.embedding, graph.vectors[neighbor_ids], self.metric)
            best = None
            for neighbor, score in zip(neighbor_ids, scores):
                candidate = Candidate(int(neighbor), float(score))
                if candidate.vertex not in scored:
                    scored.add(candidate.vertex)
                    seen.push(candidate)
                if best is None or rank_key(candidate, ordering) < rank_key(best, ordering):
                    best = candidate

            # Only a strictly better score moves the walk
            if rank_key(best, ordering)[0] >= rank_key(current, ordering)[0]:
                status = SearchStatus.CONVERGED
                break
            current = best
        else:
            if current.vertex == query.goal:
                status = SearchStatus.GOAL_REACHED

        logger.debug("greedy similarity root=%d terminal=%d status=%s steps=%d",
                     root, current.vertex, status.value, steps)

        return RankedOutput(candidates=seen.sorted(), ordering=ordering, status=status, steps=steps)

