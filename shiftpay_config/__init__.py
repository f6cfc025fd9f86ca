"""
shiftpay_config -- single public entrypoint for engine settings.

Responsibility:
    Provides the ONLY way to obtain settings at runtime through
    ``get_active_settings()``.  Services receive the returned
    ``EngineSettings`` by constructor injection; engines receive plain
    values taken from it.

Architecture position:
    Configuration -- sits beside ``shiftpay_kernel``.  Neither the kernel
    domain nor the engines import from ``shiftpay_config``.

Failure modes:
    - ``FileNotFoundError`` -- config_path does not exist.
    - ``ValueError`` -- unknown keys or invalid values.

Audit relevance:
    Every successful ``get_active_settings()`` call emits a
    ``SHIFTPAY_CONFIG_TRACE`` log entry with the config id, version and a
    checksum of the parsed values, tying cached KPIs to the settings that
    produced them.
"""

from __future__ import annotations

from pathlib import Path

from shiftpay_config.loader import compute_checksum, load_yaml_file, parse_settings
from shiftpay_config.schema import EngineSettings
from shiftpay_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "engine.yaml"

__all__ = ["EngineSettings", "get_active_settings"]


def get_active_settings(config_path: Path | str | None = None) -> EngineSettings:
    """Load, validate and return the active engine settings.

    Args:
        config_path: Override path to a settings YAML file.
            Defaults to shiftpay_config/defaults/engine.yaml.

    Returns:
        Frozen, validated EngineSettings.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file contains unknown keys or invalid values.
    """
    path = Path(config_path) if config_path is not None else _DEFAULT_CONFIG_PATH
    settings = parse_settings(load_yaml_file(path))
    checksum = compute_checksum(settings)

    _logger.info(
        "SHIFTPAY_CONFIG_TRACE",
        extra={
            "trace_type": "SHIFTPAY_CONFIG_TRACE",
            "config_id": settings.config_id,
            "config_version": settings.config_version,
            "checksum": checksum,
            "business_timezone": settings.business_timezone,
            "cache_max_age_seconds": settings.cache_max_age_seconds,
            "source": str(path),
        },
    )
    return settings
