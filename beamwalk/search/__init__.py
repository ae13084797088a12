"""
Graph search core.

Components:
- graph: Immutable CSR adjacency structure with optional vertex vectors
- distance: Similarity metrics (inner product, L2, cosine)
- frontier: Candidate and the fixed-capacity BoundedFrontier
- greedy: GreedyWalk, single-path relaxation / similarity descent
- beam: BeamSearch, beam-limited best-first search
- ubmk: Exhaustive inner-product scan used as a benchmark baseline
- results: Query, raw outputs, results and the ResultReader
"""

from beamwalk.search.beam import BeamSearch
from beamwalk.search.distance import Metric, Ordering, cosine_distance, inner_product, l2_distance
from beamwalk.search.frontier import BoundedFrontier, Candidate
from beamwalk.search.graph import Graph
from beamwalk.search.greedy import GreedyWalk
from beamwalk.search.results import (
    PathResult,
    Query,
    RankedResult,
    ResultReader,
    SearchStatus,
)
from beamwalk.search.ubmk import InnerProductBenchmark

__all__ = [
    "BeamSearch",
    "BoundedFrontier",
    "Candidate",
    "Graph",
    "GreedyWalk",
    "InnerProductBenchmark",
    "Metric",
    "Ordering",
    "PathResult",
    "Query",
    "RankedResult",
    "ResultReader",
    "SearchStatus",
    "cosine_distance",
    "inner_product",
    "l2_distance",
]
