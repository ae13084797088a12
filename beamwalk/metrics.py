"""
Reference computations and comparison metrics.

This module provides functions to:
- Compute exact shortest-path distances (Dijkstra) as a reference
- Compute exact top-k rankings via brute force as a reference
- Compute recall@k, precision@k and reciprocal rank against a reference
- Compute sum-of-squared-error between result and reference distances
"""

import heapq
import math
from typing import List, Tuple

import numpy as np
import numpy.typing as npt

from beamwalk.errors import InvalidNumeric
from beamwalk.search.distance import Metric, Ordering, batch_scores, metric_ordering
from beamwalk.search.graph import Graph


def dijkstra_reference(graph: Graph, root: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute exact single-source shortest paths with Dijkstra's algorithm.

    Accumulates in float32 to match the precision the strategies use.

    Args:
        graph: Graph with non-negative edge weights
        root: Source vertex

    Returns:
        Tuple of (distances, predecessors). Unreachable vertices have distance
        +inf and predecessor -1; the root is its own predecessor.
    """
    root = graph.check_vertex(root)
    distances = np.full(graph.num_vertices, np.inf, dtype=np.float32)
    predecessors = np.full(graph.num_vertices, -1, dtype=np.int32)
    distances[root] = 0.0
    predecessors[root] = root

    settled = np.zeros(graph.num_vertices, dtype=bool)
    heap: List[Tuple[float, int]] = [(0.0, root)]

    while heap:
        _, vertex = heapq.heappop(heap)
        if settled[vertex]:
            continue
        settled[vertex] = True

        for neighbor, weight in zip(graph.neighbor_ids(vertex), graph.edge_weights(vertex)):
            candidate = np.float32(distances[vertex] + weight)
            if candidate < distances[neighbor]:
                distances[neighbor] = candidate
                predecessors[neighbor] = vertex
                heapq.heappush(heap, (float(candidate), int(neighbor)))

    return distances, predecessors


def compute_ground_truth_brute_force(
    query_vector: np.ndarray,
    all_vectors: np.ndarray,
    k: int = 10,
    metric: Metric = Metric.L2,
) -> Tuple[List[int], List[float]]:
    """
    Compute exact k-NN via brute force (slow but exact).

    Ties are broken by the lower index, the same rule the frontier uses.

    Args:
        query_vector: Query embedding (1D array, shape: [dim])
        all_vectors: All database vectors (2D array, shape: [n_vectors, dim])
        k: Number of neighbors to find
        metric: Metric to rank by (inner product ranks descending)

    Returns:
        Tuple of (neighbor_ids, distances), both sorted best first

    Example:
        >>> query = np.array([1.0, 0.0, 0.0])
        >>> database = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]])
        >>> ids, dists = compute_ground_truth_brute_force(query, database, k=2)
        >>> ids  # [0, 1] - index 0 is closest, 1 wins the tie with 2
    """
    scores = batch_scores(query_vector, all_vectors, metric)
    keys = -scores if metric_ordering(metric) is Ordering.MAX else scores

    # Stable sort keeps lower indices first among equal scores
    order = np.argsort(keys, kind="stable")[:k]

    return order.tolist(), scores[order].tolist()


def shortest_path_ranking(distances: np.ndarray, k: int = 10) -> Tuple[List[int], List[float]]:
    """
    Rank reachable vertices by shortest-path distance (lower id wins ties).

    Args:
        distances: Reference distances, e.g. from dijkstra_reference
        k: Number of vertices to keep

    Returns:
        Tuple of (vertex_ids, distances) for the k nearest reachable vertices
    """
    reachable = np.flatnonzero(np.isfinite(distances))
    order = reachable[np.argsort(distances[reachable], kind="stable")][:k]
    return order.tolist(), distances[order].tolist()


def compute_recall_at_k(
    retrieved_ids: List[int],
    ground_truth_ids: List[int],
    k: int = 10
) -> float:
    """
    Compute recall@k: fraction of ground truth neighbors retrieved.

    When fewer than k ground truth neighbors exist (small or disconnected
    graphs), recall is measured against however many there are.

    Args:
        retrieved_ids: IDs returned by search (ordered by relevance)
        ground_truth_ids: True k-nearest neighbor IDs
        k: Number of neighbors to consider

    Returns:
        Recall@k value between 0.0 (no correct neighbors) and 1.0 (all correct)

    Example:
        >>> retrieved = [1, 2, 3, 99, 98]
        >>> ground_truth = [1, 2, 3, 4, 5]
        >>> compute_recall_at_k(retrieved, ground_truth, k=5)
        0.6  # Found 3 out of 5 correct neighbors
    """
    retrieved_set = set(retrieved_ids[:k])
    ground_truth_set = set(ground_truth_ids[:k])

    if not ground_truth_set:
        return 0.0

    correct_retrievals = len(retrieved_set & ground_truth_set)

    return correct_retrievals / len(ground_truth_set)


def compute_precision_at_k(
    retrieved_ids: List[int],
    ground_truth_ids: List[int],
    k: int = 10
) -> float:
    """
    Compute precision@k: share of the first k results that belong to the reference top-k.

    Unlike recall, the denominator is the number of results actually returned,
    so a short answer (beam exhausted early) is not penalised for its length.

    Returns:
        Precision@k in [0.0, 1.0]; 0.0 when nothing was returned
    """
    returned = retrieved_ids[:k]
    if not returned:
        return 0.0

    reference = set(ground_truth_ids[:k])
    hits = sum(1 for vertex in returned if vertex in reference)
    return hits / len(returned)


def compute_reciprocal_rank(
    retrieved_ids: List[int],
    ground_truth_ids: List[int]
) -> float:
    """
    Reciprocal of the 1-based rank of the first reference vertex in a result.

    Averaging this over a batch gives the mean reciprocal rank.

    Example:
        >>> compute_reciprocal_rank([7, 3, 1], [1, 2])
        0.333...
    """
    reference = set(ground_truth_ids)
    rank = next(
        (position for position, vertex in enumerate(retrieved_ids, start=1) if vertex in reference),
        None,
    )
    return 0.0 if rank is None else 1.0 / rank


def sum_squared_error(result: npt.ArrayLike, reference: npt.ArrayLike) -> float:
    """
    Sum of squared differences between two equally shaped arrays.

    Entries that are +inf in both arrays (unreachable on both sides) count as
    zero error; an entry infinite on one side only makes the error infinite.
    A NaN difference is returned immediately, so callers can treat it as an
    outright mismatch.

    Args:
        result: Values produced by a strategy
        reference: Reference values

    Returns:
        Sum of squared errors (float64 accumulation)
    """
    result = np.asarray(result, dtype=np.float64).reshape(-1)
    reference = np.asarray(reference, dtype=np.float64).reshape(-1)

    if result.shape != reference.shape:
        raise ValueError(f"Shape mismatch: {result.shape} vs {reference.shape}")

    total = 0.0
    for value, expected in zip(result, reference):
        if math.isinf(value) and math.isinf(expected) and value == expected:
            continue
        diff = value - expected
        if math.isnan(diff):
            return diff
        total += diff * diff

    return total


def checked_squared_error(result: npt.ArrayLike, reference: npt.ArrayLike) -> float:
    """
    sum_squared_error, but a NaN anywhere raises instead of being returned.

    Raises:
        InvalidNumeric: If the comparison produced NaN
    """
    error = sum_squared_error(result, reference)
    if math.isnan(error):
        raise InvalidNumeric("NaN encountered while comparing against the reference")
    return error
