"""
Exception types raised by beamwalk.

Structural errors (OutOfRange, MalformedGraph, UnknownVariant) mean the input
is corrupt and abort a query before any traversal starts. Search outcomes such
as an unreachable goal or a step cap are reported in results instead; see
NonConvergence for the opt-in exception form.
"""


class BeamwalkError(Exception):
    """Base class for all beamwalk errors."""


class OutOfRange(BeamwalkError, IndexError):
    """A vertex index is outside [0, V)."""

    def __init__(self, vertex: int, num_vertices: int) -> None:
        self.vertex = vertex
        self.num_vertices = num_vertices
        super().__init__(f"Vertex {vertex} out of range [0, {num_vertices})")


class MalformedGraph(BeamwalkError, ValueError):
    """CSR arrays are inconsistent (bad offsets, neighbor ids or weights)."""


class CapacityExceeded(BeamwalkError, ValueError):
    """A bounded frontier was configured with no room to hold a candidate."""


class UnknownVariant(BeamwalkError, ValueError):
    """A configuration name does not match any registered search variant."""

    def __init__(self, name: str, known) -> None:
        self.name = name
        self.known = sorted(known)
        super().__init__(f"Unknown variant {name!r} (expected one of {self.known})")


class NonConvergence(BeamwalkError):
    """The iteration cap fired before the search reached a terminal state."""


class InvalidNumeric(BeamwalkError, ArithmeticError):
    """A NaN or infinite distance showed up where a finite one is required."""


class Empty(BeamwalkError, IndexError):
    """Read or removal from an empty frontier."""
