"""
Synthetic datasets for exercising the search strategies.

The search engine itself never builds graphs; these helpers produce small
pre-built graphs and queries for tests, benchmarks and the command line:
- make_chain_graph: a list-shaped graph with given edge weights
- make_proximity_graph: random embeddings joined into a k-nearest-neighbor
  graph (scikit-learn), symmetrized and threaded with a ring so every vertex
  is reachable from every other
- make_queries: random root vertices and query embeddings
"""

from typing import Dict, List, Optional, Sequence

import numpy as np
from sklearn.neighbors import kneighbors_graph

from beamwalk.search.graph import Graph
from beamwalk.search.results import Query


def make_chain_graph(weights: Sequence[float], vectors: Optional[np.ndarray] = None) -> Graph:
    """
    Build a directed chain 0 -> 1 -> ... -> len(weights).

    Example:
        >>> graph = make_chain_graph([1.0, 2.0, 3.0, 4.0])
        >>> graph.num_vertices, graph.num_edges
        (5, 4)
    """
    adjacency = [[(v + 1, float(w))] for v, w in enumerate(weights)]
    adjacency.append([])
    return Graph.from_adjacency(adjacency, vectors=vectors)


def make_proximity_graph(
    num_vertices: int,
    dimension: int = 16,
    degree: int = 8,
    seed: Optional[int] = None,
) -> Graph:
    """
    Build a connected k-nearest-neighbor graph over random embeddings.

    Edge weights are Euclidean distances between the endpoint embeddings.

    Args:
        num_vertices: Number of vertices (>= 2)
        dimension: Embedding dimension
        degree: Neighbors per vertex in the kNN graph before symmetrizing
        seed: Random seed for reproducibility

    Returns:
        Graph with vectors of shape (num_vertices, dimension)
    """
    if num_vertices < 2:
        raise ValueError("num_vertices must be >= 2")

    rng = np.random.default_rng(seed)
    vectors = rng.standard_normal((num_vertices, dimension)).astype(np.float32)

    n_neighbors = min(degree, num_vertices - 1)
    knn = kneighbors_graph(vectors, n_neighbors=n_neighbors, mode="distance", include_self=False)

    edges: List[Dict[int, float]] = [dict() for _ in range(num_vertices)]

    def connect(u: int, v: int) -> None:
        if u == v:
            return
        weight = float(np.linalg.norm(vectors[u] - vectors[v]))
        edges[u][v] = weight
        edges[v][u] = weight

    for u in range(num_vertices):
        for i in range(knn.indptr[u], knn.indptr[u + 1]):
            connect(u, int(knn.indices[i]))

    # Ring edges guarantee a single connected component
    for u in range(num_vertices):
        connect(u, (u + 1) % num_vertices)

    adjacency = [sorted(neighbors.items()) for neighbors in edges]
    return Graph.from_adjacency(adjacency, vectors=vectors)


def make_queries(
    graph: Graph,
    num_queries: int,
    k: int = 10,
    beam_width: Optional[int] = None,
    with_embeddings: bool = True,
    seed: Optional[int] = None,
) -> List[Query]:
    """
    Draw random queries for a graph.

    Similarity queries get an embedding drawn from the same distribution as
    the graph's vectors; shortest-path queries get a random goal instead.
    """
    rng = np.random.default_rng(seed)
    queries = []

    for _ in range(num_queries):
        root = int(rng.integers(graph.num_vertices))
        if with_embeddings and graph.has_vectors:
            embedding = rng.standard_normal(graph.dimension).astype(np.float32)
            queries.append(Query(root=root, k=k, beam_width=beam_width, embedding=embedding))
        else:
            goal = int(rng.integers(graph.num_vertices))
            queries.append(Query(root=root, goal=goal, k=k, beam_width=beam_width))

    return queries
