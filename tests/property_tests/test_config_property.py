"""
Property tests for configuration manager.
"""

import json
import math
import shutil
import tempfile
from pathlib import Path

import pytest
import yaml
from hypothesis import given, settings, strategies as st

from mvts import PerColumnLags, ResampleConfig, UniformLags, lagged_pair_key, lagged_string_key
from mvts.utils.config_manager import (
    LAG_SCHEMA,
    RESAMPLE_SCHEMA,
    ConfigManager,
    lag_config_from_dict,
    label_fn_from_dict,
    resample_config_from_dict,
)

# Strategy for generating arbitrary JSON-serializable dictionaries
json_strategy = st.recursive(
    st.dictionaries(st.text(), st.one_of(st.none(), st.booleans(), st.integers(), st.floats(), st.text())),
    lambda children: st.dictionaries(st.text(), children),
    max_leaves=10
)

labels_strategy = st.lists(
    st.text(alphabet="abcdefghij_", min_size=1, max_size=8), min_size=1, max_size=5, unique=True
)


@pytest.fixture
def config_dir():
    """Temporary directory for config files."""
    temp_dir = Path(tempfile.mkdtemp())
    yield temp_dir
    shutil.rmtree(temp_dir)


def write_config(directory: Path, name: str, config) -> None:
    with open(directory / name, "w") as f:
        if name.endswith(".json"):
            json.dump(config, f)
        else:
            yaml.dump(config, f)


def test_load_uniform_lag_config(config_dir):
    """Test loading a uniform lag plan from YAML."""
    write_config(config_dir, "lags.yaml", {
        "uniform": {"max_lag": 3, "include_originals": False},
        "label_format": "string",
    })
    cm = ConfigManager(str(config_dir))

    config, label_fn = cm.load_lag_config("lags.yaml")

    assert config == UniformLags(3, False)
    assert label_fn is lagged_string_key


def test_load_per_column_lag_config(config_dir):
    """Test loading a per-column lag plan from JSON."""
    write_config(config_dir, "lags.json", {
        "per_column": {
            "open": {"keep_original": True, "max_lag": 2},
            "close": {"max_lag": 1},
        }
    })
    cm = ConfigManager(str(config_dir))

    config, label_fn = cm.load_lag_config("lags.json")

    assert isinstance(config, PerColumnLags)
    assert config.lags["open"] == (True, 2)
    assert config.lags["close"] == (True, 1)
    assert label_fn is lagged_pair_key


@pytest.mark.parametrize("invalid", [
    {},
    {"uniform": {"max_lag": 1}, "per_column": {"a": {"max_lag": 1}}},
    {"uniform": {"max_lag": -1}},
    {"uniform": {"max_lag": 1, "shift": 2}},
    {"per_column": {"a": {"keep_original": "yes", "max_lag": 1}}},
    {"uniform": {"max_lag": 1}, "label_format": "tuple"},
])
def test_invalid_lag_config_rejected(config_dir, invalid):
    """Test that configurations violating the lag schema raise ValueError."""
    write_config(config_dir, "invalid.json", invalid)
    cm = ConfigManager(str(config_dir))

    with pytest.raises(ValueError, match="Configuration validation failed"):
        cm.load_lag_config("invalid.json")


def test_load_resample_config(config_dir):
    write_config(config_dir, "resample.yml", {"closed_right": True})
    cm = ConfigManager(str(config_dir))

    assert cm.load_resample_config("resample.yml") == ResampleConfig(closed_right=True, stamp_right=False)


def test_empty_resample_config_uses_defaults(config_dir):
    (config_dir / "empty.yaml").write_text("")
    cm = ConfigManager(str(config_dir))

    assert cm.load_resample_config("empty.yaml") == ResampleConfig()


def test_invalid_resample_config_rejected(config_dir):
    write_config(config_dir, "resample.json", {"closed_right": "always"})
    cm = ConfigManager(str(config_dir))

    with pytest.raises(ValueError, match="closed_right"):
        cm.load_resample_config("resample.json")


def test_missing_config_file(config_dir):
    cm = ConfigManager(str(config_dir))
    with pytest.raises(FileNotFoundError):
        cm.load_config("absent.yaml", LAG_SCHEMA)


def test_unsupported_format(config_dir):
    (config_dir / "lags.toml").write_text("max_lag = 1")
    cm = ConfigManager(str(config_dir))
    with pytest.raises(ValueError, match="Unsupported"):
        cm.load_config("lags.toml")


def test_builders_require_exactly_one_plan():
    with pytest.raises(ValueError):
        lag_config_from_dict({})
    with pytest.raises(ValueError):
        label_fn_from_dict({"label_format": "tuple"})


@given(max_lag=st.integers(min_value=0, max_value=50), include=st.booleans())
def test_uniform_config_from_dict_round_trip(max_lag, include):
    """
    Property: a schema-valid uniform section builds the matching UniformLags.
    """
    section = {"uniform": {"max_lag": max_lag, "include_originals": include}}
    ConfigManager().validate_config(section, LAG_SCHEMA)

    assert lag_config_from_dict(section) == UniformLags(max_lag, include)


@given(
    labels=labels_strategy,
    entries=st.lists(st.tuples(st.booleans(), st.integers(min_value=0, max_value=20)), min_size=5, max_size=5),
)
@settings(max_examples=50)
def test_per_column_config_from_dict(labels, entries):
    """
    Property: every label in a per-column section maps to its
    (keep_original, max_lag) pair.
    """
    section = {
        "per_column": {
            label: {"keep_original": keep, "max_lag": lag}
            for label, (keep, lag) in zip(labels, entries)
        }
    }
    ConfigManager().validate_config(section, LAG_SCHEMA)
    config = lag_config_from_dict(section)

    for label, (keep, lag) in zip(labels, entries):
        assert config.lags[label].keep_original == keep
        assert config.lags[label].max_lag == lag


@given(closed_right=st.booleans(), stamp_right=st.booleans())
def test_resample_config_from_dict(closed_right, stamp_right):
    section = {"closed_right": closed_right, "stamp_right": stamp_right}
    ConfigManager().validate_config(section, RESAMPLE_SCHEMA)

    config = resample_config_from_dict(section)
    assert (config.closed_right, config.stamp_right) == (closed_right, stamp_right)


@given(base=json_strategy, override=json_strategy)
def test_merge_config_properties(base, override):
    """
    Property: Merging should always result in a dictionary containing keys from both,
    with override values taking precedence.
    """
    cm = ConfigManager()
    merged = cm.merge_configs(base, override)

    # Check that all override keys are present and equal
    for k, v in override.items():
        if isinstance(v, dict) and k in base and isinstance(base[k], dict):
            # Recursed
            pass
        else:
            if isinstance(v, float) and math.isnan(v):
                assert math.isnan(merged[k])
            else:
                assert merged[k] == v

    # Check that base keys not in override are preserved
    for k, v in base.items():
        if k not in override:
            if isinstance(v, float) and math.isnan(v):
                assert math.isnan(merged[k])
            else:
                assert merged[k] == v


def test_override_lag_plan():
    """Test merging a default lag plan with an experiment override."""
    cm = ConfigManager()

    default_config = {
        "uniform": {"max_lag": 5, "include_originals": True},
        "label_format": "pair",
    }
    experiment_config = {"uniform": {"max_lag": 2}}

    merged = cm.merge_configs(default_config, experiment_config)

    assert lag_config_from_dict(merged) == UniformLags(2, True)
    assert default_config["uniform"]["max_lag"] == 5


def test_load_lag_config_with_override_file(config_dir):
    write_config(config_dir, "base.yaml", {
        "uniform": {"max_lag": 5, "include_originals": True},
        "label_format": "string",
    })
    write_config(config_dir, "experiment.yaml", {"uniform": {"include_originals": False}})
    cm = ConfigManager(str(config_dir))

    config, label_fn = cm.load_lag_config("base.yaml", "experiment.yaml")

    assert config == UniformLags(5, False)
    assert label_fn is lagged_string_key


def test_override_validated_after_merge(config_dir):
    """An override switching plan shape leaves both plans in place and is rejected."""
    write_config(config_dir, "base.yaml", {"uniform": {"max_lag": 1}})
    write_config(config_dir, "experiment.yaml", {"per_column": {"a": {"max_lag": 2}}})
    cm = ConfigManager(str(config_dir))

    with pytest.raises(ValueError, match="Configuration validation failed"):
        cm.load_lag_config("base.yaml", "experiment.yaml")


def test_load_resample_config_with_override_file(config_dir):
    write_config(config_dir, "base.json", {"closed_right": True, "stamp_right": False})
    write_config(config_dir, "experiment.json", {"stamp_right": True})
    cm = ConfigManager(str(config_dir))

    assert cm.load_resample_config("base.json", "experiment.json") == ResampleConfig(True, True)
