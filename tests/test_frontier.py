"""
Tests for the bounded best-first frontier.

These tests verify:
- Capacity is never exceeded and the worst candidate is evicted
- The retained set is independent of insertion order
- Deterministic tie-breaking (lower vertex id wins)
- MIN and MAX orderings
- Empty / NaN / capacity errors
"""

import itertools
import random

import pytest

from beamwalk.errors import CapacityExceeded, Empty, InvalidNumeric
from beamwalk.search.distance import Ordering
from beamwalk.search.frontier import BoundedFrontier, Candidate, sort_candidates


def fill(frontier, pairs):
    for vertex, distance in pairs:
        frontier.push(Candidate(vertex, distance))
    return frontier


def test_push_and_pop_best_order():
    """pop_best returns candidates from best to worst"""
    frontier = fill(BoundedFrontier(capacity=10), [(0, 3.0), (1, 1.0), (2, 2.0)])

    assert frontier.pop_best() == Candidate(1, 1.0)
    assert frontier.pop_best() == Candidate(2, 2.0)
    assert frontier.pop_best() == Candidate(0, 3.0)
    assert frontier.is_empty()


def test_size_never_exceeds_capacity():
    frontier = BoundedFrontier(capacity=3)
    for i in range(10):
        frontier.push(Candidate(i, float(10 - i)))
        assert frontier.size() <= 3

    assert frontier.size() == 3


def test_overflow_evicts_worst():
    """The evicted candidate is the worst one, not the newest"""
    frontier = fill(BoundedFrontier(capacity=2), [(0, 1.0), (1, 5.0)])

    evicted = frontier.push(Candidate(2, 2.0))

    assert evicted == Candidate(1, 5.0)
    assert [c.vertex for c in frontier.sorted()] == [0, 2]


def test_overflow_evicts_new_candidate_when_it_is_worst():
    frontier = fill(BoundedFrontier(capacity=2), [(0, 1.0), (1, 2.0)])

    evicted = frontier.push(Candidate(2, 9.0))

    assert evicted == Candidate(2, 9.0)
    assert 2 not in frontier


def test_push_without_overflow_returns_none():
    frontier = BoundedFrontier(capacity=2)
    assert frontier.push(Candidate(0, 1.0)) is None


def test_retains_k_best_independent_of_insertion_order():
    """After N > K pushes the frontier holds exactly the K best, for any order"""
    pairs = [(v, float((v * 7) % 11)) for v in range(11)]
    expected = sort_candidates([Candidate(v, d) for v, d in pairs], Ordering.MIN)[:4]

    rng = random.Random(0)
    for _ in range(50):
        shuffled = pairs[:]
        rng.shuffle(shuffled)
        frontier = fill(BoundedFrontier(capacity=4), shuffled)

        assert frontier.size() == 4
        assert frontier.sorted() == expected


def test_permutation_invariance_with_ties():
    """Ties are broken by vertex id, so every permutation gives the same result"""
    pairs = [(3, 1.0), (1, 1.0), (2, 1.0), (0, 2.0)]

    results = set()
    for permutation in itertools.permutations(pairs):
        frontier = fill(BoundedFrontier(capacity=2), permutation)
        results.add(tuple(frontier.sorted()))

    assert results == {(Candidate(1, 1.0), Candidate(2, 1.0))}


def test_tie_break_lower_vertex_wins():
    frontier = fill(BoundedFrontier(capacity=5), [(9, 0.5), (4, 0.5), (7, 0.5)])

    assert frontier.pop_best().vertex == 4
    assert frontier.pop_best().vertex == 7
    assert frontier.pop_best().vertex == 9


def test_capacity_one_keeps_only_best_seen():
    """K=1 degenerates to remembering the single best candidate"""
    frontier = BoundedFrontier(capacity=1)
    best = None
    for vertex, distance in [(0, 5.0), (1, 3.0), (2, 4.0), (3, 1.0), (4, 2.0)]:
        frontier.push(Candidate(vertex, distance))
        if best is None or distance < best.distance:
            best = Candidate(vertex, distance)
        assert frontier.size() == 1
        assert frontier.peek_best() == best


class TestMaxOrdering:
    """Similarity scores: larger is better."""

    def test_pop_best_returns_largest(self):
        frontier = fill(BoundedFrontier(capacity=3, ordering=Ordering.MAX),
                        [(0, 0.1), (1, 0.9), (2, 0.5)])

        assert frontier.pop_best() == Candidate(1, 0.9)

    def test_evicts_smallest_score(self):
        frontier = fill(BoundedFrontier(capacity=2, ordering=Ordering.MAX),
                        [(0, 0.1), (1, 0.9), (2, 0.5)])

        assert [c.vertex for c in frontier.sorted()] == [1, 2]
        assert frontier.peek_worst() == Candidate(2, 0.5)

    def test_ties_still_prefer_lower_vertex(self):
        frontier = fill(BoundedFrontier(capacity=1, ordering=Ordering.MAX),
                        [(5, 0.7), (2, 0.7)])

        assert frontier.peek_best().vertex == 2


class TestDiscard:
    """Removing entries by vertex."""

    def test_discard_removes_vertex(self):
        frontier = fill(BoundedFrontier(capacity=5), [(0, 1.0), (1, 2.0)])

        assert frontier.discard(0) == 1
        assert 0 not in frontier
        assert frontier.pop_best() == Candidate(1, 2.0)

    def test_discard_missing_vertex(self):
        frontier = BoundedFrontier(capacity=2)
        assert frontier.discard(42) == 0

    def test_repeated_discard_and_push_stays_consistent(self):
        """Lazy deletion plus compaction never resurrects removed entries"""
        frontier = BoundedFrontier(capacity=3)
        for round_number in range(100):
            frontier.discard(0)
            frontier.push(Candidate(0, 100.0 - round_number))

        assert frontier.size() == 1
        assert frontier.pop_best() == Candidate(0, 1.0)
        assert frontier.is_empty()


class TestErrors:
    """Empty, NaN and capacity errors."""

    def test_pop_best_empty(self):
        with pytest.raises(Empty):
            BoundedFrontier(capacity=1).pop_best()

    def test_peek_best_empty(self):
        with pytest.raises(Empty):
            BoundedFrontier(capacity=1).peek_best()

    def test_peek_worst_empty(self):
        with pytest.raises(Empty):
            BoundedFrontier(capacity=1).peek_worst()

    def test_zero_capacity(self):
        with pytest.raises(CapacityExceeded):
            BoundedFrontier(capacity=0)

    def test_nan_distance_rejected(self):
        frontier = BoundedFrontier(capacity=2)
        with pytest.raises(InvalidNumeric):
            frontier.push(Candidate(0, float("nan")))
        assert frontier.is_empty()

    def test_infinite_distance_allowed(self):
        """Infinity orders after every finite distance"""
        frontier = fill(BoundedFrontier(capacity=2), [(0, float("inf")), (1, 3.0)])
        assert frontier.pop_best() == Candidate(1, 3.0)


def test_peek_does_not_remove():
    frontier = fill(BoundedFrontier(capacity=3), [(0, 2.0), (1, 1.0)])

    assert frontier.peek_best() == Candidate(1, 1.0)
    assert frontier.peek_worst() == Candidate(0, 2.0)
    assert len(frontier) == 2
