"""
mes_kernel.domain.stock -- Stock lot value objects.

Responsibility:
    Immutable records for process-scoped material lots and the result
    objects returned by the stock ledger (registration, consumption,
    status inquiry, summaries).

Architecture position:
    Kernel > Domain -- pure, zero I/O.  The stateful StockLedger lives in
    mes_services.stock_ledger and replaces lots instead of mutating them.

Invariants enforced:
    - available_qty is derived (quantity - used_qty), never stored
      independently; the persisted ``availableQty`` is recomputed on load.
    - Lots are frozen; registration and consumption produce new instances.

Persisted shape:
    camelCase JSON objects; ``processCode`` is omitted for legacy
    process-agnostic lots.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from mes_kernel.domain.values import ZERO, parse_timestamp, to_quantity
from mes_kernel.exceptions import StockError


class StockErrorKind(str, Enum):
    """Machine-readable kinds of registration failure."""

    MISSING_PROCESS = "MISSING_PROCESS"
    MISSING_LOT = "MISSING_LOT"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    LOT_EXHAUSTED = "LOT_EXHAUSTED"
    INVALID_RECEIVED_AT = "INVALID_RECEIVED_AT"


@dataclass(frozen=True, slots=True)
class StockLot:
    """
    One lot of one material held by one production process.

    ``process_code`` is None for lots received through the legacy,
    process-agnostic receiving path.
    """

    id: str
    process_code: str | None
    material_id: int
    material_code: str
    lot_number: str
    quantity: Decimal
    used_qty: Decimal
    received_at: datetime
    material_name: str | None = None

    @property
    def available_qty(self) -> Decimal:
        return self.quantity - self.used_qty

    @property
    def is_exhausted(self) -> bool:
        """Fully drained after at least one consumption."""
        return self.available_qty <= 0 and self.used_qty > 0

    @property
    def is_legacy(self) -> bool:
        return self.process_code is None

    def with_added_quantity(self, quantity: Decimal) -> StockLot:
        return replace(self, quantity=self.quantity + quantity)

    def with_consumed(self, quantity: Decimal) -> StockLot:
        return replace(self, used_qty=self.used_qty + quantity)

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {"id": self.id}
        if self.process_code is not None:
            record["processCode"] = self.process_code
        record.update({
            "materialId": self.material_id,
            "materialCode": self.material_code,
            "materialName": self.material_name,
            "lotNumber": self.lot_number,
            "quantity": self.quantity,
            "usedQty": self.used_qty,
            "availableQty": self.available_qty,
            "receivedAt": self.received_at,
        })
        return record

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> StockLot:
        return cls(
            id=str(record["id"]),
            process_code=record.get("processCode") or None,
            material_id=record["materialId"],
            material_code=record.get("materialCode", ""),
            material_name=record.get("materialName"),
            lot_number=record["lotNumber"],
            quantity=to_quantity(record.get("quantity", ZERO)),
            used_qty=to_quantity(record.get("usedQty", ZERO)),
            received_at=parse_timestamp(record["receivedAt"]),
        )


@dataclass(frozen=True, slots=True)
class RegistrationResult:
    """Outcome of a (process or legacy) stock registration."""

    success: bool
    stock: StockLot | None = None
    error: str | None = None
    error_code: StockErrorKind | None = None
    is_new_entry: bool | None = None

    @classmethod
    def ok(cls, stock: StockLot, is_new_entry: bool) -> RegistrationResult:
        return cls(success=True, stock=stock, is_new_entry=is_new_entry)

    @classmethod
    def failure(cls, exc: StockError) -> RegistrationResult:
        return cls(
            success=False,
            error=str(exc),
            error_code=StockErrorKind(exc.code),
        )


@dataclass(frozen=True, slots=True)
class LotDraw:
    """Quantity taken from a single lot by one consumption."""

    lot_number: str
    used_qty: Decimal


@dataclass(frozen=True, slots=True)
class ConsumptionResult:
    """
    Result of a FIFO consumption.

    ``lots`` lists the drawn lots in the order they were drained.
    ``negative_qty`` is only non-zero on the legacy path that allows
    negative stock.
    """

    requested_qty: Decimal
    deducted_qty: Decimal
    lots: tuple[LotDraw, ...] = ()
    negative_qty: Decimal = ZERO

    @property
    def shortfall(self) -> Decimal:
        """Requested quantity that could not be deducted."""
        return max(self.requested_qty - self.deducted_qty, ZERO)

    @property
    def is_fully_deducted(self) -> bool:
        return self.shortfall == 0

    @classmethod
    def empty(cls, requested_qty: Decimal) -> ConsumptionResult:
        return cls(requested_qty=requested_qty, deducted_qty=ZERO)


@dataclass(frozen=True, slots=True)
class LotStatus:
    """Pre-scan status of a (process, lot) pair."""

    exists: bool
    available_qty: Decimal
    used_qty: Decimal
    is_exhausted: bool
    can_register: bool

    @classmethod
    def absent(cls) -> LotStatus:
        return cls(
            exists=False,
            available_qty=ZERO,
            used_qty=ZERO,
            is_exhausted=False,
            can_register=True,
        )

    @classmethod
    def of(cls, lot: StockLot) -> LotStatus:
        exhausted = lot.is_exhausted
        return cls(
            exists=True,
            available_qty=lot.available_qty,
            used_qty=lot.used_qty,
            is_exhausted=exhausted,
            can_register=not exhausted,
        )


@dataclass(frozen=True, slots=True)
class ProcessStockSummary:
    """Aggregates over every lot of a process, exhausted ones included."""

    total_lots: int
    total_quantity: Decimal
    total_used: Decimal
    total_available: Decimal
    material_count: int

    @classmethod
    def zero(cls) -> ProcessStockSummary:
        return cls(
            total_lots=0,
            total_quantity=ZERO,
            total_used=ZERO,
            total_available=ZERO,
            material_count=0,
        )
