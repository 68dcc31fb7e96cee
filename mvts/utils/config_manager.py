"""
Configuration management utilities.

Lag and resample settings can live in YAML or JSON files, validated against
the schemas shipped in ``mvts/config/schemas``.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import jsonschema
import yaml

from mvts.features.lags import (
    LabelFn,
    LagConfig,
    PerColumnLags,
    UniformLags,
    lagged_pair_key,
    lagged_string_key,
)
from mvts.features.resample import ResampleConfig

logger = logging.getLogger(__name__)

SCHEMA_DIR = Path(__file__).resolve().parent.parent / "config" / "schemas"
LAG_SCHEMA = "lag_config_schema.json"
RESAMPLE_SCHEMA = "resample_config_schema.json"

LABEL_FUNCTIONS: Dict[str, LabelFn] = {
    "pair": lagged_pair_key,
    "string": lagged_string_key,
}


def lag_config_from_dict(config: Dict[str, Any]) -> LagConfig:
    """
    Build a lag configuration from a plain dictionary.

    Accepts ``{"uniform": {"max_lag": 2, "include_originals": true}}`` or
    ``{"per_column": {"a": {"keep_original": true, "max_lag": 2}}}``.

    Raises:
        ValueError: Unless exactly one of 'uniform' and 'per_column' is given
    """
    has_uniform = "uniform" in config
    has_per_column = "per_column" in config
    if has_uniform == has_per_column:
        raise ValueError("Lag configuration needs exactly one of 'uniform' or 'per_column'")

    if has_uniform:
        section = config["uniform"]
        return UniformLags(
            max_lag=int(section["max_lag"]),
            include_originals=bool(section.get("include_originals", True)),
        )

    return PerColumnLags({
        label: (bool(entry.get("keep_original", True)), int(entry["max_lag"]))
        for label, entry in config["per_column"].items()
    })


def label_fn_from_dict(config: Dict[str, Any]) -> LabelFn:
    """Label function named by 'label_format' ('pair' by default)."""
    name = config.get("label_format", "pair")
    if name not in LABEL_FUNCTIONS:
        raise ValueError(f"Unknown label_format: {name}")
    return LABEL_FUNCTIONS[name]


def resample_config_from_dict(config: Dict[str, Any]) -> ResampleConfig:
    return ResampleConfig(
        closed_right=bool(config.get("closed_right", False)),
        stamp_right=bool(config.get("stamp_right", False)),
    )


class ConfigManager:
    """
    Manages loading, validation, and merging of configurations.
    """

    def __init__(self, config_dir: Optional[str] = None, schema_dir: Optional[str] = None):
        self.config_dir = Path(config_dir) if config_dir else Path("config")
        self.schema_dir = Path(schema_dir) if schema_dir else SCHEMA_DIR

    def load_config(self, config_name: str, schema_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Load a configuration file (YAML or JSON).
        Optionally validate against a schema.

        Args:
            config_name: Name of config file (e.g. 'lags.yaml')
            schema_name: Name of schema file (e.g. 'lag_config_schema.json')

        Returns:
            Loaded configuration dictionary
        """
        config_path = self.config_dir / config_name

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "r") as f:
            if config_path.suffix in (".yaml", ".yml"):
                config = yaml.safe_load(f)
            elif config_path.suffix == ".json":
                config = json.load(f)
            else:
                raise ValueError(f"Unsupported configuration format: {config_path.suffix}")

        if config is None:
            config = {}

        if schema_name:
            self.validate_config(config, schema_name)

        return config

    def validate_config(self, config: Dict[str, Any], schema_name: str) -> None:
        """
        Validate configuration against a schema.

        Raises:
            FileNotFoundError: If the schema does not exist
            ValueError: If the configuration violates the schema
        """
        schema_path = self.schema_dir / schema_name
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema file not found: {schema_path}")

        with open(schema_path, "r") as f:
            schema = json.load(f)

        try:
            jsonschema.validate(instance=config, schema=schema)
        except jsonschema.exceptions.ValidationError as e:
            path_str = " -> ".join(str(p) for p in e.path) if e.path else "root"
            error_msg = f"Configuration validation failed at '{path_str}': {e.message}"
            logger.error(error_msg)
            raise ValueError(error_msg) from e

        logger.info(f"Configuration successfully validated against {schema_name}")

    def load_lag_config(
        self, config_name: str, override_name: Optional[str] = None
    ) -> Tuple[LagConfig, LabelFn]:
        """
        Load, validate and build a lag configuration and its label function.

        Args:
            config_name: Base lag configuration file
            override_name: Optional file deep-merged over the base before
                validation, e.g. an experiment that changes ``max_lag``

        Returns:
            (lag configuration, label function)
        """
        config = self._load_with_override(config_name, override_name, LAG_SCHEMA)
        return lag_config_from_dict(config), label_fn_from_dict(config)

    def load_resample_config(
        self, config_name: str, override_name: Optional[str] = None
    ) -> ResampleConfig:
        """Load, validate and build resample boundary flags."""
        config = self._load_with_override(config_name, override_name, RESAMPLE_SCHEMA)
        return resample_config_from_dict(config)

    def _load_with_override(
        self, config_name: str, override_name: Optional[str], schema_name: str
    ) -> Dict[str, Any]:
        if override_name is None:
            return self.load_config(config_name, schema_name)

        merged = self.merge_configs(self.load_config(config_name), self.load_config(override_name))
        logger.debug(f"Merged {override_name} over {config_name}")
        self.validate_config(merged, schema_name)
        return merged

    def merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep merge two configurations.

        Nested dictionaries are merged key by key; any other override value
        replaces the base value.

        Args:
            base: Base configuration
            override: Override configuration

        Returns:
            Merged configuration
        """
        merged = base.copy()
        for key, value in override.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self.merge_configs(merged[key], value)
            else:
                merged[key] = value
        return merged
