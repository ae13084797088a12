"""
Similarity and distance metrics for scoring vertices against a query.

Each metric has an ordering: inner product is a similarity (larger is better),
while L2 and cosine distance are distances (smaller is better). Shortest-path
search always uses the MIN ordering on accumulated edge weights.

Scores are returned as float32-rounded Python floats so that strategies and
reference computations agree at single precision.
"""

from enum import Enum

import numpy as np
import numpy.typing as npt

Vector = npt.NDArray[np.float32]
Matrix = npt.NDArray[np.float32]


class Ordering(str, Enum):
    """Which end of the distance scale is better."""

    MIN = "min"  # smaller distance is better
    MAX = "max"  # larger score is better


class Metric(str, Enum):
    INNER_PRODUCT = "inner_product"
    L2 = "l2"
    COSINE = "cosine"


def inner_product(v1: Vector, v2: Vector) -> float:
    """
    Compute the inner product of two vectors.

    This is the similarity used by inner-product proximity graphs: for
    unnormalized embeddings it rewards both direction and magnitude.

    Example:
        >>> inner_product(np.array([1.0, 2.0]), np.array([3.0, 4.0]))
        11.0
    """
    return float(np.float32(np.dot(v1, v2)))


def l2_distance(v1: Vector, v2: Vector) -> float:
    """
    Compute the Euclidean distance between two vectors.

    Example:
        >>> l2_distance(np.array([0.0, 0.0]), np.array([3.0, 4.0]))
        5.0
    """
    return float(np.float32(np.linalg.norm(v1 - v2)))


def cosine_similarity(v1: Vector, v2: Vector) -> float:
    """
    Compute cosine similarity between two vectors.

    Ranges from -1 (opposite directions) to 1 (same direction). Zero vectors
    have similarity 0 with everything.
    """
    norm_v1 = np.linalg.norm(v1)
    norm_v2 = np.linalg.norm(v2)

    if norm_v1 == 0.0 or norm_v2 == 0.0:
        return 0.0

    return float(np.dot(v1, v2) / (norm_v1 * norm_v2))


def cosine_distance(v1: Vector, v2: Vector) -> float:
    """
    Compute cosine distance (1 - cosine similarity), in [0, 2].

    Example:
        >>> cosine_distance(np.array([1.0, 0.0]), np.array([1.0, 0.0]))
        0.0
    """
    return float(np.float32(1.0 - cosine_similarity(v1, v2)))


def batch_scores(query: Vector, vectors: Matrix, metric: Metric) -> npt.NDArray[np.float32]:
    """
    Score a query against every row of a matrix in one vectorised pass.

    Args:
        query: Query vector, shape (dim,)
        vectors: Database vectors, shape (n, dim)
        metric: Which metric to apply

    Returns:
        float32 array of shape (n,), parallel to the rows of vectors
    """
    metric = Metric(metric)
    query = np.asarray(query, dtype=np.float32)
    vectors = np.asarray(vectors, dtype=np.float32)

    if metric is Metric.INNER_PRODUCT:
        scores = vectors @ query
    elif metric is Metric.L2:
        scores = np.linalg.norm(vectors - query, axis=1)
    else:
        norms = np.linalg.norm(vectors, axis=1) * np.linalg.norm(query)
        dots = vectors @ query
        with np.errstate(divide="ignore", invalid="ignore"):
            sims = np.where(norms == 0.0, 0.0, dots / np.where(norms == 0.0, 1.0, norms))
        scores = 1.0 - sims

    return np.asarray(scores, dtype=np.float32)


def metric_ordering(metric: Metric) -> Ordering:
    """Inner product is a similarity; everything else is a distance."""
    if Metric(metric) is Metric.INNER_PRODUCT:
        return Ordering.MAX
    return Ordering.MIN
