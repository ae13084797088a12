"""
Tests for SearchConfig validation, serialization and presets.
"""

import pytest

from beamwalk.config import (
    SearchConfig,
    get_benchmark_config,
    get_default_config,
    get_exact_config,
)


def test_defaults():
    config = get_default_config()

    assert config.variant == "beam_search"
    assert config.metric == "inner_product"
    assert config.beam_width == 16
    assert config.k == 10
    assert config.max_steps is None
    assert config.workers == 1


def test_json_round_trip(tmp_path):
    """A config written to JSON loads back unchanged"""
    config = SearchConfig(variant="greedy_walk", metric="l2", beam_width=8, max_steps=50,
                          workers=3, config_name="custom")
    path = tmp_path / "config.json"

    config.to_json(str(path))
    loaded = SearchConfig.from_json(str(path))

    assert loaded == config


def test_dict_round_trip():
    config = get_exact_config(100)
    assert SearchConfig.from_dict(config.to_dict()) == config


def test_unknown_variant_is_accepted_here():
    """Variant names are resolved by the runner, not by the config"""
    config = SearchConfig(variant="not_registered")
    assert config.variant == "not_registered"


@pytest.mark.parametrize("field, value", [
    ("metric", "manhattan"),
    ("beam_width", 0),
    ("k", 0),
    ("max_steps", 0),
    ("ubmk_iterations", 0),
    ("sse_tolerance", -1.0),
    ("min_recall", 1.5),
    ("workers", 0),
])
def test_invalid_values(field, value):
    with pytest.raises(ValueError):
        SearchConfig(**{field: value})


def test_unknown_key_rejected():
    with pytest.raises(TypeError):
        SearchConfig.from_dict({"beam": 4})


class TestPresets:
    """Preset configurations."""

    def test_exact_config_covers_graph(self):
        config = get_exact_config(250)

        assert config.beam_width == 250
        assert config.min_recall == 1.0

    def test_exact_config_empty_graph(self):
        assert get_exact_config(0).beam_width == 1

    def test_benchmark_config(self):
        config = get_benchmark_config(iterations=7)

        assert config.variant == "iproduct_ubmk"
        assert config.ubmk_iterations == 7


def test_repr_mentions_variant():
    assert "greedy_walk" in repr(SearchConfig(variant="greedy_walk"))
