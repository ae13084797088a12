"""
Immutable CSR graph used as the search space.

The graph stores its edges in compressed sparse row form:
- offsets[v]: index of the first outgoing edge of vertex v
- neighbors[i]: target vertex of edge i
- weights[i]: weight of edge i

The adjacency of vertex v is neighbors[offsets[v] .. next) where next is
offsets[v + 1], or E for the last vertex. Optionally each vertex carries an
embedding (one row of `vectors`) so the same graph can be searched by
similarity to a query vector.

A Graph owns copies of its arrays and marks them read-only, so a single
instance can be shared by any number of concurrent queries.
"""

from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import numpy.typing as npt

from beamwalk.errors import MalformedGraph, OutOfRange

Vector = npt.NDArray[np.float32]
Adjacency = Sequence[Sequence[Tuple[int, float]]]


def _frozen(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


class Graph:
    """
    Read-only weighted adjacency structure in CSR form.

    Construction validates the arrays and raises MalformedGraph when they are
    inconsistent. Lookups raise OutOfRange for vertex ids outside [0, V).
    """

    def __init__(
        self,
        offsets: npt.ArrayLike,
        neighbors: npt.ArrayLike,
        weights: npt.ArrayLike,
        vectors: Optional[npt.ArrayLike] = None,
    ) -> None:
        """
        Build a graph from CSR arrays.

        Args:
            offsets: Per-vertex start index into neighbors/weights (length V)
            neighbors: Flat array of edge targets (length E)
            weights: Flat array of edge weights, parallel to neighbors
            vectors: Optional per-vertex embeddings, shape (V, dim)
        """
        offsets = np.array(offsets, dtype=np.int64).reshape(-1)
        neighbors = np.array(neighbors, dtype=np.int64).reshape(-1)
        weights = np.array(weights, dtype=np.float32).reshape(-1)

        num_vertices = len(offsets)
        num_edges = len(neighbors)

        if len(weights) != num_edges:
            raise MalformedGraph(
                f"weights has {len(weights)} entries but neighbors has {num_edges}"
            )

        if num_vertices == 0 and num_edges > 0:
            raise MalformedGraph(f"{num_edges} edges but no vertices")

        if num_vertices > 0:
            if offsets[0] != 0:
                raise MalformedGraph(f"offsets[0] must be 0, got {offsets[0]}")
            if np.any(np.diff(offsets) < 0):
                bad = int(np.argmax(np.diff(offsets) < 0)) + 1
                raise MalformedGraph(f"offsets must be non-decreasing (offsets[{bad}] decreases)")
            if offsets[-1] > num_edges:
                raise MalformedGraph(
                    f"last offset {offsets[-1]} exceeds edge count {num_edges}"
                )

        if num_edges > 0:
            out_of_range = (neighbors < 0) | (neighbors >= num_vertices)
            if np.any(out_of_range):
                bad = int(np.argmax(out_of_range))
                raise MalformedGraph(
                    f"neighbors[{bad}] = {neighbors[bad]} outside [0, {num_vertices})"
                )
            if not np.all(np.isfinite(weights)):
                bad = int(np.argmax(~np.isfinite(weights)))
                raise MalformedGraph(f"weights[{bad}] = {weights[bad]} is not finite")

        if vectors is not None:
            vectors = np.array(vectors, dtype=np.float32)
            if vectors.ndim != 2 or vectors.shape[0] != num_vertices:
                raise MalformedGraph(
                    f"vectors must have shape ({num_vertices}, dim), got {vectors.shape}"
                )
            vectors = _frozen(vectors)

        self.num_vertices = num_vertices
        self.num_edges = num_edges
        self.offsets = _frozen(offsets.astype(np.int32))
        self.neighbor_array = _frozen(neighbors.astype(np.int32))
        self.weights = _frozen(weights)
        self.vectors: Optional[np.ndarray] = vectors

        # End offsets: offsets shifted by one, with E for the last vertex
        self._ends = _frozen(
            np.append(self.offsets[1:], np.int32(num_edges)).astype(np.int32)
        )

    @classmethod
    def from_adjacency(
        cls, adjacency: Adjacency, vectors: Optional[npt.ArrayLike] = None
    ) -> "Graph":
        """
        Encode adjacency lists into CSR form.

        Args:
            adjacency: adjacency[v] is a list of (neighbor_id, weight) pairs
            vectors: Optional per-vertex embeddings

        Returns:
            A new Graph whose neighbors(v) reproduce adjacency[v] in order
        """
        offsets = []
        neighbors: List[int] = []
        weights: List[float] = []

        for edges in adjacency:
            offsets.append(len(neighbors))
            for neighbor_id, weight in edges:
                neighbors.append(neighbor_id)
                weights.append(weight)

        return cls(offsets, neighbors, weights, vectors=vectors)

    @classmethod
    def from_dense(
        cls, matrix: npt.ArrayLike, vectors: Optional[npt.ArrayLike] = None
    ) -> "Graph":
        """
        Encode a dense weight matrix into CSR form.

        Every non-zero matrix[u][v] becomes an edge u -> v with that weight.
        Edges are stored in column order within each row.
        """
        matrix = np.asarray(matrix, dtype=np.float32)
        if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
            raise MalformedGraph(f"dense matrix must be square, got shape {matrix.shape}")

        rows, cols = np.nonzero(matrix)
        counts = np.bincount(rows, minlength=matrix.shape[0])
        offsets = np.concatenate(([0], np.cumsum(counts)[:-1])) if len(counts) else []

        return cls(offsets, cols, matrix[rows, cols], vectors=vectors)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Graph":
        """Load a graph written by save()."""
        with np.load(Path(path)) as data:
            vectors = data["vectors"] if "vectors" in data.files else None
            return cls(data["offsets"], data["neighbors"], data["weights"], vectors=vectors)

    def save(self, path: Union[str, Path]) -> None:
        """Write the CSR arrays (and vectors, if any) to a .npz file."""
        arrays = {
            "offsets": self.offsets,
            "neighbors": self.neighbor_array,
            "weights": self.weights,
        }
        if self.vectors is not None:
            arrays["vectors"] = self.vectors
        np.savez(Path(path), **arrays)

    def to_adjacency(self) -> List[List[Tuple[int, float]]]:
        """Decode the CSR arrays back into adjacency lists."""
        return [self.neighbors(v) for v in range(self.num_vertices)]

    def check_vertex(self, vertex: int) -> int:
        """
        Validate a vertex id.

        Raises:
            OutOfRange: If vertex is not in [0, V)
        """
        if not 0 <= vertex < self.num_vertices:
            raise OutOfRange(vertex, self.num_vertices)
        return int(vertex)

    def degree(self, vertex: int) -> int:
        """Number of outgoing edges of a vertex."""
        v = self.check_vertex(vertex)
        return int(self._ends[v] - self.offsets[v])

    def neighbor_ids(self, vertex: int) -> np.ndarray:
        """Read-only view of the outgoing neighbor ids of a vertex."""
        v = self.check_vertex(vertex)
        return self.neighbor_array[self.offsets[v]:self._ends[v]]

    def edge_weights(self, vertex: int) -> np.ndarray:
        """Read-only view of the outgoing edge weights, parallel to neighbor_ids()."""
        v = self.check_vertex(vertex)
        return self.weights[self.offsets[v]:self._ends[v]]

    def neighbors(self, vertex: int) -> List[Tuple[int, float]]:
        """
        Get the outgoing edges of a vertex.

        Args:
            vertex: Vertex id

        Returns:
            List of (neighbor_id, weight) pairs in storage order
        """
        return [
            (int(n), float(w))
            for n, w in zip(self.neighbor_ids(vertex), self.edge_weights(vertex))
        ]

    @property
    def has_vectors(self) -> bool:
        return self.vectors is not None

    @property
    def dimension(self) -> int:
        """Embedding dimension, or 0 when the graph carries no vectors."""
        if self.vectors is None:
            return 0
        return int(self.vectors.shape[1])

    def vector(self, vertex: int) -> Vector:
        """Embedding of a vertex."""
        if self.vectors is None:
            raise ValueError("Graph has no vertex vectors")
        return self.vectors[self.check_vertex(vertex)]

    def __len__(self) -> int:
        return self.num_vertices

    def __repr__(self) -> str:
        return f"Graph(V={self.num_vertices}, E={self.num_edges}, dim={self.dimension})"
