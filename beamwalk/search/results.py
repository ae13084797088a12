"""
Queries, raw strategy outputs, and caller-facing results.

Strategies emit one of two raw forms:
- PathOutput: per-vertex distance and predecessor arrays (shortest-path mode)
- RankedOutput: an unordered collection of candidates (similarity mode, or
  open-ended shortest-path search)

ResultReader turns raw output into a PathResult or RankedResult, detecting
unreachable goals and rejecting NaN/Inf distances.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

import numpy as np
import numpy.typing as npt

from beamwalk.errors import InvalidNumeric, NonConvergence
from beamwalk.search.distance import Ordering
from beamwalk.search.frontier import Candidate, sort_candidates

UNREACHABLE = float("inf")

# Predecessor value for vertices with no known parent
NO_PREDECESSOR = -1


class SearchStatus(str, Enum):
    """Terminal state of a traversal."""

    GOAL_REACHED = "goal_reached"
    CONVERGED = "converged"  # greedy walk found no improving move
    EXHAUSTED = "exhausted"  # beam search ran out of candidates
    STEP_LIMIT = "step_limit"  # iteration cap fired first


@dataclass
class Query:
    """
    A single search request.

    Args:
        root: Start vertex
        goal: Target vertex, or None (or the -1 sentinel) for open-ended search
        beam_width: Frontier capacity for beam search (None uses the config default)
        k: Number of ranked results to return
        embedding: Query vector for similarity search; None selects shortest-path mode
    """

    root: int
    goal: Optional[int] = None
    beam_width: Optional[int] = None
    k: int = 10
    embedding: Optional[npt.NDArray[np.float32]] = None

    def __post_init__(self) -> None:
        # Other negative goals are left in place for the range check to reject
        if self.goal == -1:
            self.goal = None
        if self.k < 1:
            raise ValueError(f"k must be >= 1, got {self.k}")
        if self.embedding is not None:
            self.embedding = np.asarray(self.embedding, dtype=np.float32).reshape(-1)

    @property
    def is_similarity(self) -> bool:
        return self.embedding is not None


@dataclass
class PathOutput:
    """Raw shortest-path output: per-vertex distances and predecessors."""

    root: int
    goal: Optional[int]
    terminal: int
    distances: npt.NDArray[np.float32]
    predecessors: npt.NDArray[np.int32]
    status: SearchStatus
    steps: int


@dataclass
class RankedOutput:
    """Raw ranked output: candidates in no particular order."""

    candidates: List[Candidate]
    ordering: Ordering
    status: SearchStatus
    steps: int


RawOutput = Union[PathOutput, RankedOutput]


@dataclass
class PathResult:
    """Distance to the target and the root -> target path."""

    root: int
    target: int
    distance: float
    path: List[int]
    status: SearchStatus
    steps: int = 0

    @property
    def reachable(self) -> bool:
        return not math.isinf(self.distance)

    def raise_for_status(self) -> "PathResult":
        """Raise NonConvergence if the step cap fired; return self otherwise."""
        if self.status is SearchStatus.STEP_LIMIT:
            raise NonConvergence(
                f"Search from {self.root} to {self.target} stopped after {self.steps} steps"
            )
        return self


@dataclass
class RankedResult:
    """Up to k (vertex_id, distance) pairs, best first."""

    neighbors: List[Tuple[int, float]] = field(default_factory=list)
    ordering: Ordering = Ordering.MIN
    status: SearchStatus = SearchStatus.EXHAUSTED
    steps: int = 0

    @property
    def ids(self) -> List[int]:
        return [vertex for vertex, _ in self.neighbors]

    @property
    def distances(self) -> List[float]:
        return [distance for _, distance in self.neighbors]

    def raise_for_status(self) -> "RankedResult":
        """Raise NonConvergence if the step cap fired; return self otherwise."""
        if self.status is SearchStatus.STEP_LIMIT:
            raise NonConvergence(f"Search stopped after {self.steps} steps")
        return self

    def __len__(self) -> int:
        return len(self.neighbors)


Result = Union[PathResult, RankedResult]


class ResultReader:
    """Decodes raw strategy output into PathResult or RankedResult."""

    def decode(self, raw: RawOutput, k: int = 10) -> Result:
        """Dispatch on the raw output type."""
        if isinstance(raw, PathOutput):
            return self.decode_path(raw)
        if isinstance(raw, RankedOutput):
            return self.decode_ranked(raw, k)
        raise TypeError(f"Cannot decode {type(raw).__name__}")

    def decode_path(self, raw: PathOutput) -> PathResult:
        """
        Reconstruct the root -> target path from a predecessor array.

        The target is the goal, or the terminal vertex for open-ended walks.
        The goal counts as unreachable when its distance is infinite or when
        the search stopped without reaching it, even if a tentative distance
        was recorded on the way.

        Raises:
            InvalidNumeric: If the target's distance is NaN
        """
        target = raw.goal if raw.goal is not None else raw.terminal
        distance = float(raw.distances[target])

        if math.isnan(distance):
            raise InvalidNumeric(f"NaN distance for vertex {target}")

        stopped_short = raw.goal is not None and raw.status is not SearchStatus.GOAL_REACHED
        if math.isinf(distance) or stopped_short:
            return PathResult(raw.root, target, UNREACHABLE, [], raw.status, raw.steps)

        # Walk predecessors back to root; a chain longer than V is corrupt
        path = [target]
        current = target
        for _ in range(len(raw.predecessors)):
            if current == raw.root:
                break
            current = int(raw.predecessors[current])
            if current == NO_PREDECESSOR:
                break
            path.append(current)

        if path[-1] != raw.root:
            return PathResult(
                raw.root, target, UNREACHABLE, [], SearchStatus.STEP_LIMIT, raw.steps
            )

        path.reverse()
        return PathResult(raw.root, target, distance, path, raw.status, raw.steps)

    def decode_ranked(self, raw: RankedOutput, k: int) -> RankedResult:
        """
        Sort candidates best-first and keep the top k.

        Raises:
            InvalidNumeric: If any candidate distance is NaN or infinite
        """
        for candidate in raw.candidates:
            if not math.isfinite(candidate.distance):
                raise InvalidNumeric(
                    f"Non-finite distance {candidate.distance} for vertex {candidate.vertex}"
                )

        ranked = sort_candidates(raw.candidates, raw.ordering)[:k]
        return RankedResult(
            neighbors=[(c.vertex, c.distance) for c in ranked],
            ordering=raw.ordering,
            status=raw.status,
            steps=raw.steps,
        )
