"""
MES configuration schema.

Frozen dataclasses parsed from the YAML profile by ``mes_config.loader``.
``MesConfig`` is the runtime artifact handed to ``mes_services.bootstrap``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StorageKeys:
    """Blob keys, one per persisted collection."""

    stocks: str = "vietnam_mes_stocks"
    materials: str = "vietnam_mes_materials"
    products: str = "vietnam_mes_products"
    bom: str = "vietnam_mes_bom"
    lines: str = "vietnam_mes_lines"


@dataclass(frozen=True)
class StorageConfig:
    """Where snapshots live.

    ``backend`` is ``memory`` or ``sql``; ``url`` is the SQLAlchemy URL
    used by the ``sql`` backend.
    """

    backend: str
    url: str | None = None
    echo: bool = False
    keys: StorageKeys = field(default_factory=StorageKeys)


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LedgerConfig:
    timezone: str = "Asia/Ho_Chi_Minh"  # plant-local day for "today's receivings"


@dataclass(frozen=True)
class MaterialStatusConfig:
    danger_ratio: Decimal = Decimal("0.3")


@dataclass(frozen=True)
class LineSeed:
    """A production line created when the line store is empty."""

    code: str
    name: str
    process_code: str
    is_active: bool = True


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MesConfig:
    profile: str
    storage: StorageConfig
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    material_status: MaterialStatusConfig = field(default_factory=MaterialStatusConfig)
    lines: tuple[LineSeed, ...] = ()
    checksum: str = ""
