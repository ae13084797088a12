"""
beamwalk - Bounded-frontier graph search

Greedy and beam-limited best-first search over a static CSR graph, for
approximate nearest-neighbor and shortest-path queries, with a runner that
checks results against exact references.
"""

__version__ = "0.1.0"

from beamwalk.config import (
    SearchConfig,
    get_benchmark_config,
    get_default_config,
    get_exact_config,
)
from beamwalk.errors import (
    BeamwalkError,
    CapacityExceeded,
    Empty,
    InvalidNumeric,
    MalformedGraph,
    NonConvergence,
    OutOfRange,
    UnknownVariant,
)
from beamwalk.runner import BatchReport, QueryReport, Runner, make_variant
from beamwalk.search import (
    BeamSearch,
    BoundedFrontier,
    Candidate,
    Graph,
    GreedyWalk,
    InnerProductBenchmark,
    PathResult,
    Query,
    RankedResult,
    ResultReader,
    SearchStatus,
)

__all__ = [
    # Core classes
    "Graph",
    "BoundedFrontier",
    "Candidate",
    "Query",
    # Strategies
    "GreedyWalk",
    "BeamSearch",
    "InnerProductBenchmark",
    # Results
    "PathResult",
    "RankedResult",
    "ResultReader",
    "SearchStatus",
    # Running
    "Runner",
    "BatchReport",
    "QueryReport",
    "make_variant",
    # Configuration
    "SearchConfig",
    "get_default_config",
    "get_exact_config",
    "get_benchmark_config",
    # Errors
    "BeamwalkError",
    "OutOfRange",
    "MalformedGraph",
    "CapacityExceeded",
    "UnknownVariant",
    "NonConvergence",
    "InvalidNumeric",
    "Empty",
]
