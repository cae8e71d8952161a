"""
Pure domain layer.

Immutable records and value helpers with NO dependencies on:
- ORM (SQLAlchemy)
- Storage
- I/O

Time is only available through an injected Clock.
"""

from mes_kernel.domain.clock import (
    Clock,
    DeterministicClock,
    SystemClock,
)
from mes_kernel.domain.master_data import (
    BOMItem,
    Material,
    Product,
    ProductionLine,
)
from mes_kernel.domain.stock import (
    ConsumptionResult,
    LotDraw,
    LotStatus,
    ProcessStockSummary,
    RegistrationResult,
    StockErrorKind,
    StockLot,
)
from mes_kernel.domain.values import ZERO, parse_timestamp, to_quantity

__all__ = [
    # Time
    "Clock",
    "SystemClock",
    "DeterministicClock",
    # Stock
    "StockLot",
    "StockErrorKind",
    "RegistrationResult",
    "LotDraw",
    "ConsumptionResult",
    "LotStatus",
    "ProcessStockSummary",
    # Master data
    "Material",
    "Product",
    "BOMItem",
    "ProductionLine",
    # Values
    "ZERO",
    "to_quantity",
    "parse_timestamp",
]
