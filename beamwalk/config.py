"""Configuration for beamwalk search runs.

Usage:
    from beamwalk import Runner, SearchConfig

    # Default config
    runner = Runner(graph)

    # Custom config
    config = SearchConfig(variant="greedy_walk", metric="l2")
    runner = Runner(graph, config=config)

    # From file
    config = SearchConfig.from_json("my_config.json")
    runner = Runner(graph, config=config)
"""

from typing import Dict, Any, Optional
import json
from dataclasses import dataclass, asdict

from beamwalk.search.distance import Metric


@dataclass
class SearchConfig:
    """Configuration for a search session.

    Search:
        variant: Registered variant name ("beam_search", "greedy_walk", "iproduct_ubmk").
            Checked when the Runner resolves it, not here.
        metric: Similarity metric for embedding queries ("inner_product", "l2", "cosine")
        beam_width: Default frontier capacity for beam search
        k: Default number of ranked results per query
        max_steps: Expansion cap per query (None = vertex count)
        ubmk_iterations: Repetitions of the exhaustive scan benchmark

    Comparison:
        sse_tolerance: Largest squared distance error still counted as a match
        min_recall: Smallest recall@k still counted as a match

    Execution:
        workers: Thread pool size for batches (1 = run in the calling thread)
    """

    variant: str = "beam_search"
    metric: str = "inner_product"
    beam_width: int = 16
    k: int = 10
    max_steps: Optional[int] = None
    ubmk_iterations: int = 100

    sse_tolerance: float = 1e-4
    min_recall: float = 0.9

    workers: int = 1

    # Metadata
    config_name: str = "default"

    def __post_init__(self):
        """Validate configuration."""
        valid_metrics = [m.value for m in Metric]
        if self.metric not in valid_metrics:
            raise ValueError(f"metric must be one of {valid_metrics}")

        if self.beam_width < 1:
            raise ValueError("beam_width must be >= 1")

        if self.k < 1:
            raise ValueError("k must be >= 1")

        if self.max_steps is not None and self.max_steps < 1:
            raise ValueError("max_steps must be >= 1 or None")

        if self.ubmk_iterations < 1:
            raise ValueError("ubmk_iterations must be >= 1")

        if self.sse_tolerance < 0.0:
            raise ValueError("sse_tolerance must be non-negative")

        if not 0.0 <= self.min_recall <= 1.0:
            raise ValueError("min_recall must be in [0.0, 1.0]")

        if self.workers < 1:
            raise ValueError("workers must be >= 1")

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return asdict(self)

    def to_json(self, filepath: str) -> None:
        """Save configuration to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'SearchConfig':
        """Load configuration from dictionary."""
        return cls(**config_dict)

    @classmethod
    def from_json(cls, filepath: str) -> 'SearchConfig':
        """Load configuration from JSON file."""
        with open(filepath, 'r') as f:
            config_dict = json.load(f)
        return cls.from_dict(config_dict)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"SearchConfig("
            f"{self.config_name}, "
            f"{self.variant}, "
            f"metric={self.metric}, "
            f"beam={self.beam_width}, k={self.k})"
        )


# Preset configurations

def get_default_config() -> SearchConfig:
    """Default configuration: beam search, inner product, beam width 16."""
    return SearchConfig(config_name="default")


def get_exact_config(num_vertices: int) -> SearchConfig:
    """Beam search wide enough to never evict, so results are exact.

    Args:
        num_vertices: Vertex count of the graph to be searched
    """
    return SearchConfig(
        config_name="exact",
        beam_width=max(num_vertices, 1),
        min_recall=1.0,
    )


def get_benchmark_config(iterations: int = 100) -> SearchConfig:
    """Exhaustive inner-product scan, repeated for timing."""
    return SearchConfig(
        config_name="iproduct_ubmk",
        variant="iproduct_ubmk",
        metric="inner_product",
        ubmk_iterations=iterations,
        min_recall=1.0,
    )
