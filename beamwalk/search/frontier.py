"""
Fixed-capacity best-first frontier.

A BoundedFrontier keeps at most K candidates. Pushing past capacity evicts the
single worst candidate, so after any sequence of pushes the frontier holds the
K best candidates seen so far regardless of insertion order.

Ordering rules:
- Ordering.MIN: smaller distance is better (shortest path, L2, cosine)
- Ordering.MAX: larger distance is better (inner-product similarity)
- Equal distances: the lower vertex id is better
- Identical (vertex, distance) entries: the earlier insertion is better

Both ends are kept in binary heaps (one best-first, one worst-first) with lazy
deletion, so push, pop_best and eviction all run in O(log K) amortized.
"""

import heapq
import math
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Set, Tuple

from beamwalk.errors import CapacityExceeded, Empty, InvalidNumeric
from beamwalk.search.distance import Ordering

# (distance key, vertex id, sequence number)
_RankKey = Tuple[float, int, int]


@dataclass(frozen=True)
class Candidate:
    """A vertex paired with its distance (or similarity score) to the query."""

    vertex: int
    distance: float


def rank_key(candidate: Candidate, ordering: Ordering) -> Tuple[float, int]:
    """Sort key where smaller means better under the given ordering."""
    if Ordering(ordering) is Ordering.MAX:
        return (-candidate.distance, candidate.vertex)
    return (candidate.distance, candidate.vertex)


def sort_candidates(candidates, ordering: Ordering) -> List[Candidate]:
    """Sort candidates best-first with the frontier's tie-break rule."""
    return sorted(candidates, key=lambda c: rank_key(c, ordering))


class BoundedFrontier:
    """
    Best-first priority container holding at most `capacity` candidates.

    Example:
        >>> frontier = BoundedFrontier(capacity=2)
        >>> for v, d in [(0, 3.0), (1, 1.0), (2, 2.0)]:
        ...     evicted = frontier.push(Candidate(v, d))
        >>> frontier.pop_best()
        Candidate(vertex=1, distance=1.0)
    """

    def __init__(self, capacity: int, ordering: Ordering = Ordering.MIN) -> None:
        """
        Create an empty frontier.

        Args:
            capacity: Maximum number of candidates retained (K >= 1)
            ordering: Whether smaller (MIN) or larger (MAX) distances are better

        Raises:
            CapacityExceeded: If capacity < 1, since no push could ever succeed
        """
        if capacity < 1:
            raise CapacityExceeded(f"Frontier capacity must be >= 1, got {capacity}")

        self.capacity = int(capacity)
        self.ordering = Ordering(ordering)

        # seq -> candidate for every live entry
        self._live: Dict[int, Candidate] = {}
        # vertex -> seqs of its live entries
        self._by_vertex: Dict[int, Set[int]] = {}

        self._best: List[_RankKey] = []
        self._worst: List[Tuple[float, int, int]] = []
        self._seq = 0

    def _key(self, candidate: Candidate, seq: int) -> _RankKey:
        distance, vertex = rank_key(candidate, self.ordering)
        return (distance, vertex, seq)

    def push(self, candidate: Candidate) -> Optional[Candidate]:
        """
        Insert a candidate, evicting the worst one on overflow.

        Args:
            candidate: Candidate to insert

        Returns:
            The evicted candidate (which may be `candidate` itself if it is the
            worst), or None when nothing was evicted

        Raises:
            InvalidNumeric: If the candidate's distance is NaN
        """
        if math.isnan(candidate.distance):
            raise InvalidNumeric(f"NaN distance for vertex {candidate.vertex}")

        seq = self._seq
        self._seq += 1

        key = self._key(candidate, seq)
        self._live[seq] = candidate
        self._by_vertex.setdefault(candidate.vertex, set()).add(seq)
        heapq.heappush(self._best, key)
        heapq.heappush(self._worst, (-key[0], -key[1], -key[2]))

        if len(self._live) > self.capacity:
            return self._pop_worst()
        return None

    def pop_best(self) -> Candidate:
        """
        Remove and return the best candidate.

        Raises:
            Empty: If the frontier holds no candidates
        """
        self._prune_best()
        if not self._best:
            raise Empty("pop_best() on an empty frontier")

        _, _, seq = heapq.heappop(self._best)
        return self._remove(seq)

    def peek_best(self) -> Candidate:
        """Return the best candidate without removing it."""
        self._prune_best()
        if not self._best:
            raise Empty("peek_best() on an empty frontier")
        return self._live[self._best[0][2]]

    def peek_worst(self) -> Candidate:
        """Return the worst candidate without removing it."""
        self._prune_worst()
        if not self._worst:
            raise Empty("peek_worst() on an empty frontier")
        return self._live[-self._worst[0][2]]

    def discard(self, vertex: int) -> int:
        """
        Remove every entry for a vertex.

        Returns:
            Number of entries removed
        """
        seqs = self._by_vertex.pop(vertex, set())
        for seq in seqs:
            del self._live[seq]
        self._maybe_compact()
        return len(seqs)

    def size(self) -> int:
        return len(self._live)

    def is_empty(self) -> bool:
        return not self._live

    def sorted(self) -> List[Candidate]:
        """Snapshot of the contents, best first."""
        entries = sorted((self._key(c, seq), c) for seq, c in self._live.items())
        return [c for _, c in entries]

    def __len__(self) -> int:
        return len(self._live)

    def __contains__(self, vertex: int) -> bool:
        return vertex in self._by_vertex

    def __iter__(self) -> Iterator[Candidate]:
        return iter(self.sorted())

    def __repr__(self) -> str:
        return (
            f"BoundedFrontier(size={self.size()}, capacity={self.capacity}, "
            f"ordering={self.ordering.value})"
        )

    def _pop_worst(self) -> Candidate:
        self._prune_worst()
        _, _, neg_seq = heapq.heappop(self._worst)
        return self._remove(-neg_seq)

    def _remove(self, seq: int) -> Candidate:
        candidate = self._live.pop(seq)
        seqs = self._by_vertex[candidate.vertex]
        seqs.discard(seq)
        if not seqs:
            del self._by_vertex[candidate.vertex]
        self._maybe_compact()
        return candidate

    def _prune_best(self) -> None:
        while self._best and self._best[0][2] not in self._live:
            heapq.heappop(self._best)

    def _prune_worst(self) -> None:
        while self._worst and -self._worst[0][2] not in self._live:
            heapq.heappop(self._worst)

    def _maybe_compact(self) -> None:
        # Dead heap entries are bounded by twice the live size (plus capacity)
        limit = 2 * len(self._live) + self.capacity
        if len(self._best) > limit or len(self._worst) > limit:
            self._best = [self._key(c, seq) for seq, c in self._live.items()]
            heapq.heapify(self._best)
            self._worst = [(-d, -v, -s) for d, v, s in self._best]
            heapq.heapify(self._worst)
