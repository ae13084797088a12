"""
Pytest configuration and shared fixtures for beamwalk tests
"""

import pytest
import numpy as np

from beamwalk.datasets import make_chain_graph, make_proximity_graph
from beamwalk.search.graph import Graph


@pytest.fixture
def chain_graph() -> Graph:
    """5-vertex chain 0 -> 1 -> 2 -> 3 -> 4 with weights 1, 2, 3, 4."""
    return make_chain_graph([1.0, 2.0, 3.0, 4.0])


@pytest.fixture
def disconnected_graph() -> Graph:
    """Two components: 0 <-> 1 <-> 2 and 3 <-> 4."""
    adjacency = [
        [(1, 1.0)],
        [(0, 1.0), (2, 1.0)],
        [(1, 1.0)],
        [(4, 2.0)],
        [(3, 2.0)],
    ]
    return Graph.from_adjacency(adjacency)


@pytest.fixture(scope="session")
def proximity_graph() -> Graph:
    """Connected 200-vertex kNN graph over 8-dimensional embeddings."""
    return make_proximity_graph(200, dimension=8, degree=6, seed=42)


@pytest.fixture
def query_vector() -> np.ndarray:
    """Query embedding matching the proximity_graph dimension."""
    rng = np.random.default_rng(7)
    return rng.standard_normal(8).astype(np.float32)
