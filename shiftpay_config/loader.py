"""
Settings loader (``shiftpay_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into an ``EngineSettings``
instance.  Callers use ``shiftpay_config.get_active_settings()``; this
module is the parsing half of that entry point.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or invalid values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, fields
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from shiftpay_config.schema import EngineSettings


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_settings(data: dict[str, Any]) -> EngineSettings:
    """
    Parse an ``EngineSettings`` from a dict.

    Top-level ``config_id`` / ``config_version`` are read alongside the
    ``engine`` / ``cache`` / ``time_account`` / ``bonus`` sections.

    Raises:
        ValueError: on unknown keys or values rejected by the schema.
    """
    engine = data.get("engine", {}) or {}
    cache = data.get("cache", {}) or {}
    time_account = data.get("time_account", {}) or {}
    bonus = data.get("bonus", {}) or {}

    flat: dict[str, Any] = {}
    if "config_id" in data:
        flat["config_id"] = str(data["config_id"])
    if "config_version" in data:
        flat["config_version"] = int(data["config_version"])
    for section in (engine, cache, time_account, bonus):
        flat.update(section)

    known = {f.name for f in fields(EngineSettings)}
    unknown = sorted(set(flat) - known)
    if unknown:
        raise ValueError(f"Unknown settings keys: {', '.join(unknown)}")

    if "planned_hours_factor" in flat:
        # str() first so a YAML float like 4.35 stays exactly 4.35
        flat["planned_hours_factor"] = Decimal(str(flat["planned_hours_factor"]))

    return EngineSettings(**flat)


def compute_checksum(settings: EngineSettings) -> str:
    """SHA-256 of the canonical JSON form of ``settings``."""
    canonical = json.dumps(asdict(settings), sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
