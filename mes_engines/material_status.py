"""
Module: mes_engines.material_status
Responsibility:
    Classify a material's on-hand stock against its safety stock.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Rules (first match wins):
    stock == 0                         -> EXHAUSTED
    stock <  safe_stock * danger_ratio -> DANGER
    stock <  safe_stock                -> WARNING
    otherwise                          -> GOOD
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from mes_kernel.domain.values import to_quantity

DEFAULT_DANGER_RATIO = Decimal("0.3")


class MaterialStatus(str, Enum):
    GOOD = "good"
    WARNING = "warning"
    DANGER = "danger"
    EXHAUSTED = "exhausted"


def classify_material_stock(
    stock: Decimal | int | str,
    safe_stock: Decimal | int | str,
    danger_ratio: Decimal | str = DEFAULT_DANGER_RATIO,
) -> MaterialStatus:
    stock = to_quantity(stock)
    safe_stock = to_quantity(safe_stock)
    if stock == 0:
        return MaterialStatus.EXHAUSTED
    if stock < safe_stock * to_quantity(danger_ratio):
        return MaterialStatus.DANGER
    if stock < safe_stock:
        return MaterialStatus.WARNING
    return MaterialStatus.GOOD
