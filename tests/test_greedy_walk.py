"""
Tests for the greedy walk.

These tests verify:
- Exact shortest paths on list-shaped graphs
- Unreachable goals decode to the UNREACHABLE sentinel
- The step cap stops every walk
- Similarity mode descends towards the query and stops at local optima
"""

import math

import numpy as np
import pytest

from beamwalk.datasets import make_chain_graph
from beamwalk.errors import NonConvergence, OutOfRange
from beamwalk.metrics import dijkstra_reference
from beamwalk.search.distance import Metric
from beamwalk.search.graph import Graph
from beamwalk.search.greedy import GreedyWalk
from beamwalk.search.results import (
    UNREACHABLE,
    PathOutput,
    Query,
    RankedOutput,
    ResultReader,
    SearchStatus,
)


def walk(graph, query, **kwargs):
    raw = GreedyWalk(**kwargs).search(graph, query)
    return ResultReader().decode(raw, query.k)


def test_chain_reaches_goal(chain_graph):
    """0 -> 4 on the chain costs 1 + 2 + 3 + 4"""
    result = walk(chain_graph, Query(root=0, goal=4))

    assert result.distance == 10.0
    assert result.path == [0, 1, 2, 3, 4]
    assert result.status is SearchStatus.GOAL_REACHED
    assert result.reachable


def test_root_is_goal(chain_graph):
    result = walk(chain_graph, Query(root=2, goal=2))

    assert result.distance == 0.0
    assert result.path == [2]
    assert result.steps == 0


def test_unreachable_goal_in_other_component(disconnected_graph):
    """Goal in a different component decodes to UNREACHABLE with an empty path"""
    result = walk(disconnected_graph, Query(root=0, goal=4))

    assert result.distance == UNREACHABLE
    assert math.isinf(result.distance)
    assert result.path == []
    assert not result.reachable
    assert result.status is SearchStatus.CONVERGED


def test_goal_behind_root_is_unreachable(chain_graph):
    """Edges are directed: the chain cannot be walked backwards"""
    result = walk(chain_graph, Query(root=3, goal=1))
    assert not result.reachable


def test_open_ended_walk_stops_at_terminal(chain_graph):
    """Without a goal the result describes the vertex the walk ended on"""
    result = walk(chain_graph, Query(root=0))

    assert result.target == 4
    assert result.distance == 10.0
    assert result.status is SearchStatus.CONVERGED


def test_negative_goal_means_no_goal(chain_graph):
    raw = GreedyWalk().search(chain_graph, Query(root=0, goal=-1))
    assert raw.goal is None


def test_matches_dijkstra_on_random_chains():
    """On list-shaped graphs greedy relaxation is exact"""
    rng = np.random.default_rng(3)
    for _ in range(10):
        weights = rng.uniform(0.1, 5.0, size=30).astype(np.float32)
        graph = make_chain_graph(weights)
        reference, _ = dijkstra_reference(graph, 0)

        for goal in (1, 15, 30):
            result = walk(graph, Query(root=0, goal=goal))
            assert result.distance == pytest.approx(float(reference[goal]), rel=1e-6)
            assert result.path == list(range(goal + 1))


def test_matches_dijkstra_on_undirected_path_from_endpoint():
    """A bidirectional path walked from one end is still exact"""
    rng = np.random.default_rng(11)
    weights = rng.uniform(0.5, 2.0, size=20)
    adjacency = [[] for _ in range(21)]
    for v, w in enumerate(weights):
        adjacency[v].append((v + 1, float(w)))
        adjacency[v + 1].append((v, float(w)))
    graph = Graph.from_adjacency(adjacency)
    reference, _ = dijkstra_reference(graph, 0)

    raw = GreedyWalk().search(graph, Query(root=0))

    assert np.array_equal(raw.distances, reference)


def test_raw_output_shape(chain_graph):
    raw = GreedyWalk().search(chain_graph, Query(root=0, goal=4))

    assert isinstance(raw, PathOutput)
    assert raw.distances.dtype == np.float32
    assert raw.predecessors[0] == 0, "Root is its own predecessor"
    assert raw.predecessors[4] == 3


class TestStepLimit:
    """The expansion cap bounds every walk."""

    def test_cap_before_goal(self, chain_graph):
        result = walk(chain_graph, Query(root=0, goal=4), max_steps=2)

        assert result.status is SearchStatus.STEP_LIMIT
        assert not result.reachable
        assert result.steps == 2

    def test_cap_landing_on_goal_counts_as_reached(self, chain_graph):
        """The final permitted move can still reach the goal"""
        result = walk(chain_graph, Query(root=0, goal=4), max_steps=4)

        assert result.status is SearchStatus.GOAL_REACHED
        assert result.distance == 10.0

    def test_raise_for_status(self, chain_graph):
        result = walk(chain_graph, Query(root=0, goal=4), max_steps=1)
        with pytest.raises(NonConvergence):
            result.raise_for_status()

    def test_default_cap_is_vertex_count(self):
        """A cycle cannot loop forever"""
        adjacency = [[(1, 1.0)], [(2, 1.0)], [(0, 1.0)]]
        raw = GreedyWalk().search(Graph.from_adjacency(adjacency), Query(root=0))

        assert raw.steps <= 3


class TestSimilarity:
    """Walks guided by a query embedding."""

    @pytest.fixture
    def line_graph(self):
        vectors = np.array([[0.0], [1.0], [2.0], [3.0], [4.0]])
        return make_chain_graph([1.0, 1.0, 1.0, 1.0], vectors=vectors)

    def test_descends_towards_query(self, line_graph):
        query = Query(root=0, k=3, embedding=np.array([10.0]))
        result = walk(line_graph, query, metric=Metric.L2)

        assert result.ids == [4, 3, 2]
        assert result.distances[0] == pytest.approx(6.0)
        assert result.status is SearchStatus.CONVERGED

    def test_inner_product_prefers_larger_scores(self, line_graph):
        query = Query(root=0, k=1, embedding=np.array([1.0]))
        result = walk(line_graph, query, metric=Metric.INNER_PRODUCT)

        assert result.ids == [4]
        assert result.distances == [4.0]

    def test_stops_in_local_optimum(self):
        """Greedy takes the locally best neighbor and cannot backtrack"""
        adjacency = [
            [(1, 4.0), (2, 1.0)],
            [(0, 4.0)],
            [(0, 1.0), (3, 10.0)],
            [(2, 10.0)],
        ]
        vectors = np.array([[0.0], [4.0], [-1.0], [9.0]])
        graph = Graph.from_adjacency(adjacency, vectors=vectors)

        result = walk(graph, Query(root=0, k=1, embedding=np.array([10.0])), metric="l2")

        assert result.ids == [1], "Vertex 3 is closer but hidden behind vertex 2"
        assert result.status is SearchStatus.CONVERGED

    def test_returns_ranked_output(self, line_graph):
        raw = GreedyWalk(metric="l2").search(line_graph, Query(root=0, embedding=[1.0]))
        assert isinstance(raw, RankedOutput)

    def test_similarity_without_vectors(self, chain_graph):
        with pytest.raises(ValueError):
            GreedyWalk().search(chain_graph, Query(root=0, embedding=[1.0]))


def test_out_of_range_root(chain_graph):
    with pytest.raises(OutOfRange):
        GreedyWalk().search(chain_graph, Query(root=9))


@pytest.mark.parametrize("goal", [5, 99, -7])
def test_out_of_range_goal(chain_graph, goal):
    """A bad goal is rejected before the walk starts"""
    with pytest.raises(OutOfRange):
        GreedyWalk().search(chain_graph, Query(root=0, goal=goal))


def test_out_of_range_goal_similarity():
    graph = make_chain_graph([1.0], vectors=np.eye(2))
    with pytest.raises(OutOfRange):
        GreedyWalk(metric="l2").search(graph, Query(root=0, goal=99, embedding=[1.0, 0.0]))
