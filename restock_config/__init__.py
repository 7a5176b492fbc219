"""
restock_config -- single public entrypoint for restock configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    directly.  Returns a frozen ``RestockConfiguration``.

Architecture position:
    Configuration -- YAML configuration sets under ``restock_config/sets/``.
    Sits above ``restock_kernel`` and ``restock_modules`` (it builds their
    config dataclasses); neither of them imports from this package.

Failure modes:
    - ``FileNotFoundError`` -- the path or named set does not exist, or a
      directory holds more than one set and none was named.
    - ``ValueError`` -- schema or value validation failures (including an
      unknown batch failure policy).

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``RESTOCK_CONFIG_TRACE`` log entry with the config id, version and
    checksum.
"""

from __future__ import annotations

from pathlib import Path

from restock_config.loader import compute_checksum, load_configuration, parse_configuration
from restock_config.schema import RestockConfiguration
from restock_kernel.logging_config import get_logger

_logger = get_logger("config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_active_config(
    path: Path | str | None = None,
    config_id: str | None = None,
) -> RestockConfiguration:
    """The ONLY public configuration entrypoint.

    Args:
        path: A configuration set file, or a directory of ``*.yaml`` sets.
            Defaults to ``restock_config/sets/``.
        config_id: Which set to use when ``path`` is a directory.  Without
            it, ``default.yaml`` is used, or the only set present.

    Raises:
        FileNotFoundError: If no matching configuration set is found.
        ValueError: If configuration validation fails.
    """
    source = _find_config_file(Path(path) if path is not None else _DEFAULT_CONFIG_DIR, config_id)
    config = load_configuration(source)

    if config_id is not None and config.config_id != config_id:
        raise FileNotFoundError(
            f"Configuration set {source} declares config_id={config.config_id!r}, "
            f"expected {config_id!r}"
        )

    _logger.info(
        "RESTOCK_CONFIG_TRACE",
        extra={
            "trace_type": "RESTOCK_CONFIG_TRACE",
            "config_set_id": config.config_id,
            "config_set_version": config.version,
            "checksum": config.checksum,
            "source": str(source),
            "batch_failure_policy": config.purchasing.batch_failure_policy,
        },
    )
    return config


def _find_config_file(path: Path, config_id: str | None) -> Path:
    if path.is_file():
        return path
    if not path.is_dir():
        raise FileNotFoundError(f"Configuration path not found: {path}")

    candidates = sorted(p for p in path.iterdir() if p.suffix in (".yaml", ".yml"))
    if config_id is not None:
        for candidate in candidates:
            if candidate.stem == config_id:
                return candidate
        raise FileNotFoundError(f"No configuration set {config_id!r} in {path}")

    for candidate in candidates:
        if candidate.stem == "default":
            return candidate
    if len(candidates) == 1:
        return candidates[0]
    raise FileNotFoundError(
        f"Expected a 'default' set or exactly one set in {path}, found {len(candidates)}"
    )


__all__ = [
    "RestockConfiguration",
    "compute_checksum",
    "get_active_config",
    "load_configuration",
    "parse_configuration",
]
