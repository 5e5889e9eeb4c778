"""
Import Configuration Module

Loads the explicit configuration passed into every pipeline stage.
"""

import logging
import os
from dataclasses import dataclass, fields
from datetime import date
from decimal import Decimal
from pathlib import Path

import yaml

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "STATEMENT_IMPORT_CONFIG_DIR"
SETTINGS_FILE = "import_settings.yaml"
RULES_FILE = "categorization_rules.yaml"


@dataclass(frozen=True)
class ImportConfig:
    """Flags and limits for one statement import."""

    tolerate_format_errors: bool = True
    ignore_duplicates: bool = False
    validate_balances: bool = True
    allow_future_dates: bool = False
    min_date: date | None = None
    max_abs_amount: Decimal = Decimal("1000000")
    max_description_length: int = 500
    balance_tolerance: Decimal = Decimal("0.01")
    nearby_days: int = 3

    def replace(self, **changes) -> "ImportConfig":
        """Return a copy with the given fields changed."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update(changes)
        return ImportConfig(**values)

    @classmethod
    def from_dict(cls, data: dict) -> "ImportConfig":
        """Build a config from a settings mapping, ignoring unknown keys.

        Args:
            data: Mapping as loaded from import_settings.yaml

        Returns:
            ImportConfig

        Raises:
            ValueError: If a value has the wrong shape
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown import settings: {sorted(unknown)}")

        values = {k: v for k, v in data.items() if k in known}

        for key in ("max_abs_amount", "balance_tolerance"):
            if key in values:
                values[key] = Decimal(str(values[key]))

        if values.get("min_date") is not None and not isinstance(values["min_date"], date):
            values["min_date"] = date.fromisoformat(str(values["min_date"]))

        for key in ("max_description_length", "nearby_days"):
            if key in values:
                values[key] = int(values[key])
                if values[key] < 0:
                    raise ValueError(f"{key} must be non-negative")

        return cls(**values)


def resolve_config_dir(config_dir: Path | str | None = None) -> Path:
    """Resolve the configuration directory.

    Order: explicit argument, STATEMENT_IMPORT_CONFIG_DIR, then <repo>/config.
    """
    if config_dir:
        return Path(config_dir)
    env_dir = os.getenv(CONFIG_DIR_ENV)
    if env_dir:
        return Path(env_dir)
    return Path(__file__).parent.parent.parent / "config"


def load_yaml_file(path: Path) -> dict | None:
    """Load a YAML mapping, returning None when the file does not exist."""
    if not path.exists():
        logger.warning(f"Configuration file not found: {path}")
        return None

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(str(path), str(e)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def load_import_config(config_dir: Path | str | None = None) -> ImportConfig:
    """Load ImportConfig from import_settings.yaml, falling back to defaults.

    Args:
        config_dir: Configuration directory (see resolve_config_dir)

    Returns:
        ImportConfig
    """
    path = resolve_config_dir(config_dir) / SETTINGS_FILE
    data = load_yaml_file(path)
    if data is None:
        return ImportConfig()

    try:
        config = ImportConfig.from_dict(data.get("import", data))
    except (TypeError, ValueError, ArithmeticError) as e:
        raise ConfigurationError(str(path), str(e)) from e

    logger.info(f"Loaded import settings from {path}")
    return config
