"""
Configuration Loader (``mes_config.loader``).

Responsibility
--------------
Loads a YAML profile and parses it into typed ``mes_config.schema``
dataclass instances.  Callers use ``mes_config.get_active_config()``.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; no silent defaults for required fields.
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the raw
  profile for change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Unknown storage backend, bad timezone or ratio  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from mes_config.schema import (
    LedgerConfig,
    LineSeed,
    MaterialStatusConfig,
    MesConfig,
    StorageConfig,
    StorageKeys,
)

STORAGE_BACKENDS = ("memory", "sql")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file and return its contents as a dict."""
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_storage_keys(data: dict[str, Any]) -> StorageKeys:
    known = set(StorageKeys.__dataclass_fields__)
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown storage keys: {unknown}")
    return StorageKeys(**{k: str(v) for k, v in data.items()})


def parse_storage(data: dict[str, Any]) -> StorageConfig:
    backend = data["backend"]
    if backend not in STORAGE_BACKENDS:
        raise ValueError(
            f"Unknown storage backend {backend!r}; expected one of {STORAGE_BACKENDS}"
        )
    url = data.get("url")
    if backend == "sql" and not url:
        raise ValueError("storage.url is required for the sql backend")
    return StorageConfig(
        backend=backend,
        url=url,
        echo=bool(data.get("echo", False)),
        keys=parse_storage_keys(data.get("keys") or {}),
    )


def parse_ledger(data: dict[str, Any]) -> LedgerConfig:
    timezone = data.get("timezone", LedgerConfig.timezone)
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone {timezone!r}") from exc
    return LedgerConfig(timezone=timezone)


def parse_material_status(data: dict[str, Any]) -> MaterialStatusConfig:
    raw = data.get("danger_ratio", "0.3")
    try:
        ratio = Decimal(str(raw))
    except InvalidOperation as exc:
        raise ValueError(f"danger_ratio must be a number, got {raw!r}") from exc
    if not 0 <= ratio <= 1:
        raise ValueError(f"danger_ratio must be between 0 and 1, got {ratio}")
    return MaterialStatusConfig(danger_ratio=ratio)


def parse_line_seed(data: dict[str, Any]) -> LineSeed:
    return LineSeed(
        code=data["code"],
        name=data["name"],
        process_code=str(data["process_code"]).upper(),
        is_active=bool(data.get("is_active", True)),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_config(data: dict[str, Any]) -> MesConfig:
    """Parse a whole profile dict into ``MesConfig``."""
    return MesConfig(
        profile=data["profile"],
        storage=parse_storage(data["storage"]),
        ledger=parse_ledger(data.get("ledger") or {}),
        material_status=parse_material_status(data.get("material_status") or {}),
        lines=tuple(parse_line_seed(line) for line in data.get("lines") or ()),
        checksum=compute_checksum(data),
    )


def load_config(path: Path) -> MesConfig:
    return parse_config(load_yaml_file(path))
