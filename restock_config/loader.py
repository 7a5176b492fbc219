"""
Configuration Loader (``restock_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into a frozen
``RestockConfiguration``.  The single public entry point for runtime
config is ``restock_config.get_active_config()``.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` with a descriptive message; unknown
  keys in a module section are rejected, not ignored.
* ``compute_checksum`` produces a deterministic SHA-256 hash over the
  parsed document for configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys or bad values  -> ``ValueError``.
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from restock_config.schema import RestockConfiguration
from restock_modules.purchasing.config import PurchasingConfig
from restock_modules.reconciliation.config import ReconciliationConfig

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def _section(data: dict[str, Any], name: str, schema: type) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' section must be a mapping")
    known = {f.name for f in dataclasses.fields(schema)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ValueError(f"Unknown keys in '{name}' section: {unknown}")
    return section


def parse_configuration(data: dict[str, Any]) -> RestockConfiguration:
    """
    Parse a configuration document.

    Raises:
        ValueError: missing ``config_id``, bad version or log level, unknown
            section keys, or a module config rejecting its values.
    """
    config_id = data.get("config_id")
    if not config_id:
        raise ValueError("Configuration is missing 'config_id'")
    try:
        version = int(data.get("version", 1))
    except (TypeError, ValueError):
        raise ValueError(f"version must be an integer, got {data.get('version')!r}") from None
    log_level = str(data.get("log_level", "INFO")).upper()
    if log_level not in _LOG_LEVELS:
        raise ValueError(f"log_level must be one of {_LOG_LEVELS}, got {log_level!r}")

    return RestockConfiguration(
        config_id=str(config_id),
        version=version,
        database_url=str(data.get("database_url", "sqlite:///restock.db")),
        log_level=log_level,
        purchasing=PurchasingConfig.from_dict(_section(data, "purchasing", PurchasingConfig)),
        reconciliation=ReconciliationConfig.from_dict(
            _section(data, "reconciliation", ReconciliationConfig)
        ),
        checksum=compute_checksum(data),
    )


def load_configuration(path: Path) -> RestockConfiguration:
    """Load and parse one configuration set file."""
    return parse_configuration(load_yaml_file(path))
