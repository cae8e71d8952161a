"""
mes_services.stock_ledger -- Process-scoped material lot ledger.

Responsibility:
    Own the collection of StockLot records: register lots scanned into a
    production process, consume them oldest-first, answer status and
    summary queries, and keep the legacy process-agnostic receiving path
    working on the same collection.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Uses plan_fifo_depletion (mes_engines.fifo) for lot ordering and a
    CollectionStore (mes_kernel.storage) for persistence.  Pure lot types
    live in mes_kernel.domain.stock.

Invariants enforced:
    - (process_code, lot_number) identifies at most one lot.  A legacy lot
      (process_code None) and a process lot with the same number are
      different records.
    - quantity and used_qty only grow; available_qty is always
      quantity - used_qty.
    - A process lot drained to zero after use can never be registered
      again (LOT_EXHAUSTED).
    - Process-scoped consumption never drives available_qty below zero.
    - Every mutation persists the whole new snapshot first and swaps it in
      only after the write succeeded.

Failure modes:
    - Registration validation failures are returned as
      RegistrationResult.failure(...), never raised.
    - StorageReadError on hydration of a corrupt snapshot.
    - StorageWriteError from any mutation; in-memory state is unchanged.
    - InvalidQuantityError from consumption with a non-numeric quantity.

Usage:
    ledger = StockLedger(CollectionStore(blob_store, "vietnam_mes_stocks"))

    result = ledger.register_process_stock(
        process_code="CA",
        material_id=1,
        material_code="WIRE-RED-05",
        lot_number="L240101-01",
        quantity=100,
    )
    if not result.success:
        show(result.error_code)

    consumed = ledger.consume_process_stock("CA", 1, 150)
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import uuid4
from zoneinfo import ZoneInfo

from mes_engines.fifo import FifoCandidate, FifoPlan, plan_fifo_depletion
from mes_kernel.domain.clock import Clock, SystemClock
from mes_kernel.domain.stock import (
    ConsumptionResult,
    LotDraw,
    LotStatus,
    ProcessStockSummary,
    RegistrationResult,
    StockLot,
)
from mes_kernel.domain.values import ZERO, parse_timestamp, to_quantity
from mes_kernel.exceptions import (
    InvalidQuantityError,
    InvalidReceivedAtError,
    LotExhaustedError,
    MissingLotError,
    MissingProcessError,
    StockError,
    StorageReadError,
)
from mes_kernel.logging_config import LogContext, get_logger
from mes_kernel.storage.collection import CollectionStore

logger = get_logger("services.stock_ledger")


def _is_blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


def _parse_registration_quantity(quantity: Any, lot_number: str | None) -> Decimal:
    try:
        qty = to_quantity(quantity)
    except ValueError as exc:
        raise InvalidQuantityError(str(quantity), lot_number) from exc
    if qty < 0:
        raise InvalidQuantityError(str(qty), lot_number)
    return qty


def _parse_requested_quantity(requested_qty: Any) -> Decimal:
    try:
        return to_quantity(requested_qty)
    except ValueError as exc:
        raise InvalidQuantityError(str(requested_qty)) from exc


class StockLedger:
    """
    Ledger of material lots per production process.

    Contract:
        Receives a CollectionStore and a Clock via constructor injection.
        The collection is hydrated lazily on first use; ``close()`` drops
        the cached snapshot.
    Guarantees:
        - ``register_process_stock`` creates or tops up a lot, or returns
          a failure result with a StockErrorKind.
        - ``consume_process_stock`` drains lots of one material in one
          process oldest-first and caps at what is available.
        - Query methods return None / [] / zeros for unknown codes.
    Non-goals:
        - No cross-process locking; one ledger instance per store.
        - No deletion of lots; exhausted lots stay on record.
    """

    def __init__(
        self,
        store: CollectionStore,
        clock: Clock | None = None,
        timezone: str = "UTC",
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._zone = ZoneInfo(timezone)
        self._lock = threading.RLock()
        self._lots: tuple[StockLot, ...] | None = None

    # ------------------------------------------------------------------
    # Snapshot handling
    # ------------------------------------------------------------------

    def _snapshot(self) -> tuple[StockLot, ...]:
        if self._lots is None:
            records = self._store.load()
            try:
                self._lots = tuple(StockLot.from_record(r) for r in records)
            except (KeyError, TypeError, ValueError) as exc:
                logger.error(
                    "stock_snapshot_invalid",
                    extra={"key": self._store.key, "error": str(exc)},
                )
                raise StorageReadError(self._store.key, f"invalid stock record: {exc}") from exc
            logger.info(
                "stock_ledger_hydrated",
                extra={"key": self._store.key, "lot_count": len(self._lots)},
            )
        return self._lots

    def _commit(self, lots: tuple[StockLot, ...]) -> None:
        # Persist before swapping so a failed write leaves the old snapshot.
        self._store.save([lot.to_record() for lot in lots])
        self._lots = lots

    def close(self) -> None:
        """Drop the cached snapshot; the next call re-reads the store."""
        with self._lock:
            self._lots = None

    @staticmethod
    def _find(
        lots: tuple[StockLot, ...],
        process_code: str | None,
        lot_number: str,
    ) -> int | None:
        for i, lot in enumerate(lots):
            if lot.process_code == process_code and lot.lot_number == lot_number:
                return i
        return None

    @staticmethod
    def _replace_at(
        lots: tuple[StockLot, ...],
        index: int,
        lot: StockLot,
    ) -> tuple[StockLot, ...]:
        return lots[:index] + (lot,) + lots[index + 1:]

    def _received_at(
        self,
        received_at: datetime | str | None,
        lot_number: str,
    ) -> datetime:
        if received_at is None:
            return self._clock.now()
        try:
            return parse_timestamp(received_at)
        except ValueError as exc:
            raise InvalidReceivedAtError(str(received_at), lot_number) from exc

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_process_stock(
        self,
        process_code: str,
        material_id: int,
        material_code: str,
        lot_number: str,
        quantity: Decimal | int | str,
        material_name: str | None = None,
        received_at: datetime | str | None = None,
    ) -> RegistrationResult:
        """Register a scanned lot into ``process_code``.

        A new (process, lot) pair creates a lot; an existing one is topped
        up by ``quantity`` unless it is exhausted.
        """
        with LogContext.bind(process_code=process_code or None), self._lock:
            try:
                if _is_blank(process_code):
                    raise MissingProcessError(lot_number)
                if _is_blank(lot_number):
                    raise MissingLotError(process_code)
                qty = _parse_registration_quantity(quantity, lot_number)
                received = self._received_at(received_at, lot_number)

                lots = self._snapshot()
                index = self._find(lots, process_code, lot_number)

                if index is None:
                    lot = StockLot(
                        id=str(uuid4()),
                        process_code=process_code,
                        material_id=material_id,
                        material_code=material_code,
                        material_name=material_name,
                        lot_number=lot_number,
                        quantity=qty,
                        used_qty=ZERO,
                        received_at=received,
                    )
                    self._commit(lots + (lot,))
                    logger.info(
                        "process_stock_registered",
                        extra={
                            "lot_number": lot_number,
                            "material_id": material_id,
                            "quantity": qty,
                            "is_new_entry": True,
                        },
                    )
                    return RegistrationResult.ok(lot, is_new_entry=True)

                existing = lots[index]
                if existing.is_exhausted:
                    raise LotExhaustedError(
                        process_code, lot_number, str(existing.used_qty)
                    )

                updated = existing.with_added_quantity(qty)
                self._commit(self._replace_at(lots, index, updated))
                logger.info(
                    "process_stock_registered",
                    extra={
                        "lot_number": lot_number,
                        "material_id": existing.material_id,
                        "quantity": qty,
                        "total_quantity": updated.quantity,
                        "is_new_entry": False,
                    },
                )
                return RegistrationResult.ok(updated, is_new_entry=False)

            except StockError as exc:
                logger.warning(
                    "process_stock_registration_rejected",
                    extra={"lot_number": lot_number, "error_code": exc.code},
                )
                return RegistrationResult.failure(exc)

    # ------------------------------------------------------------------
    # Consumption
    # ------------------------------------------------------------------

    def _apply_plan(
        self,
        lots: tuple[StockLot, ...],
        plan: FifoPlan,
    ) -> ConsumptionResult:
        if not plan.draws:
            return ConsumptionResult.empty(plan.requested)

        taken = {draw.key: draw.quantity for draw in plan.draws}
        new_lots = tuple(
            lot.with_consumed(taken[lot.id]) if lot.id in taken else lot
            for lot in lots
        )
        self._commit(new_lots)
        return ConsumptionResult(
            requested_qty=plan.requested,
            deducted_qty=plan.allocated,
            lots=tuple(LotDraw(d.lot_number, d.quantity) for d in plan.draws),
            negative_qty=plan.negative,
        )

    def consume_process_stock(
        self,
        process_code: str,
        material_id: int,
        requested_qty: Decimal | int | str,
    ) -> ConsumptionResult:
        """Consume ``requested_qty`` of a material in a process, oldest lot first.

        Over-consumption is capped at the total available quantity; the
        difference is reported as ``shortfall``.
        """
        requested = _parse_requested_quantity(requested_qty)

        with LogContext.bind(process_code=process_code or None), self._lock:
            if requested <= 0:
                return ConsumptionResult.empty(requested)

            lots = self._snapshot()
            candidates = [
                FifoCandidate(
                    key=lot.id,
                    lot_number=lot.lot_number,
                    available=lot.available_qty,
                    received_at=lot.received_at,
                    sequence=i,
                )
                for i, lot in enumerate(lots)
                if lot.process_code == process_code
                and lot.material_id == material_id
                and lot.available_qty > 0
            ]
            plan = plan_fifo_depletion(candidates=candidates, requested=requested)
            result = self._apply_plan(lots, plan)

            logger.info(
                "process_stock_consumed",
                extra={
                    "material_id": material_id,
                    "requested_qty": requested,
                    "deducted_qty": result.deducted_qty,
                    "lot_count": len(result.lots),
                },
            )
            if result.shortfall > 0:
                logger.warning(
                    "process_stock_shortfall",
                    extra={"material_id": material_id, "shortfall": result.shortfall},
                )
            return result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_process_stock_by_lot(
        self,
        process_code: str,
        lot_number: str,
    ) -> StockLot | None:
        with self._lock:
            lots = self._snapshot()
            index = self._find(lots, process_code, lot_number)
            return None if index is None else lots[index]

    def is_lot_exists_for_process(self, process_code: str, lot_number: str) -> bool:
        return self.get_process_stock_by_lot(process_code, lot_number) is not None

    def check_process_stock_status(
        self,
        process_code: str,
        lot_number: str,
    ) -> LotStatus:
        """Status shown before a scan is accepted."""
        lot = self.get_process_stock_by_lot(process_code, lot_number)
        if lot is None:
            return LotStatus.absent()
        return LotStatus.of(lot)

    def _process_lots(self, process_code: str) -> list[StockLot]:
        with self._lock:
            return [lot for lot in self._snapshot() if lot.process_code == process_code]

    def get_stocks_by_process(
        self,
        process_code: str,
        show_zero: bool = False,
        material_code: str | None = None,
    ) -> list[StockLot]:
        lots = self._process_lots(process_code)
        if not show_zero:
            lots = [lot for lot in lots if lot.available_qty != 0]
        if material_code:
            lots = [lot for lot in lots if material_code in lot.material_code]
        return lots

    def get_process_stock_summary(self, process_code: str) -> ProcessStockSummary:
        lots = self._process_lots(process_code)
        if not lots:
            return ProcessStockSummary.zero()
        return ProcessStockSummary(
            total_lots=len(lots),
            total_quantity=sum((lot.quantity for lot in lots), ZERO),
            total_used=sum((lot.used_qty for lot in lots), ZERO),
            total_available=sum((lot.available_qty for lot in lots), ZERO),
            material_count=len({lot.material_id for lot in lots}),
        )

    def get_process_available_qty(self, process_code: str, material_id: int) -> Decimal:
        return sum(
            (
                lot.available_qty
                for lot in self._process_lots(process_code)
                if lot.material_id == material_id
            ),
            ZERO,
        )

    def get_today_process_receivings(
        self,
        process_code: str | None = None,
    ) -> list[StockLot]:
        """Lots received on the current plant-local calendar day."""
        today = self._clock.today(self._zone)
        with self._lock:
            lots: Iterable[StockLot] = self._snapshot()
            if process_code is not None:
                lots = (lot for lot in lots if lot.process_code == process_code)
            return [
                lot for lot in lots
                if lot.received_at.astimezone(self._zone).date() == today
            ]

    def list_process_codes(self) -> list[str]:
        """Distinct process codes in first-registration order."""
        with self._lock:
            seen: dict[str, None] = {}
            for lot in self._snapshot():
                if lot.process_code:
                    seen.setdefault(lot.process_code, None)
            return list(seen)

    def get_unassigned_stocks(self) -> list[StockLot]:
        """Lots received without a process (legacy path)."""
        with self._lock:
            return [lot for lot in self._snapshot() if lot.is_legacy]

    # ------------------------------------------------------------------
    # Legacy process-agnostic path
    # ------------------------------------------------------------------

    def receive_stock(
        self,
        material_id: int,
        material_code: str,
        lot_number: str,
        quantity: Decimal | int | str,
        material_name: str | None = None,
        received_at: datetime | str | None = None,
    ) -> RegistrationResult:
        """Receive a lot with no process.  Existing lots are always topped up."""
        with self._lock:
            try:
                if _is_blank(lot_number):
                    raise MissingLotError()
                qty = _parse_registration_quantity(quantity, lot_number)
                received = self._received_at(received_at, lot_number)

                lots = self._snapshot()
                index = self._find(lots, None, lot_number)
                if index is None:
                    lot = StockLot(
                        id=str(uuid4()),
                        process_code=None,
                        material_id=material_id,
                        material_code=material_code,
                        material_name=material_name,
                        lot_number=lot_number,
                        quantity=qty,
                        used_qty=ZERO,
                        received_at=received,
                    )
                    self._commit(lots + (lot,))
                    is_new = True
                else:
                    lot = lots[index].with_added_quantity(qty)
                    self._commit(self._replace_at(lots, index, lot))
                    is_new = False

                logger.info(
                    "legacy_stock_received",
                    extra={
                        "lot_number": lot_number,
                        "material_id": lot.material_id,
                        "quantity": qty,
                        "is_new_entry": is_new,
                    },
                )
                return RegistrationResult.ok(lot, is_new_entry=is_new)

            except StockError as exc:
                logger.warning(
                    "legacy_stock_receive_rejected",
                    extra={"lot_number": lot_number, "error_code": exc.code},
                )
                return RegistrationResult.failure(exc)

    def get_all_stocks(self) -> list[StockLot]:
        """Every lot, process-scoped and legacy, in registration order."""
        with self._lock:
            return list(self._snapshot())

    def consume_stock_fifo_with_negative(
        self,
        material_id: int,
        requested_qty: Decimal | int | str,
    ) -> ConsumptionResult:
        """Consume legacy lots oldest-first, booking any excess as negative stock.

        The excess lands on the newest legacy lot of the material.  With no
        legacy lot at all the excess is left as ``shortfall``.
        """
        requested = _parse_requested_quantity(requested_qty)

        with self._lock:
            if requested <= 0:
                return ConsumptionResult.empty(requested)

            lots = self._snapshot()
            candidates = [
                FifoCandidate(
                    key=lot.id,
                    lot_number=lot.lot_number,
                    available=lot.available_qty,
                    received_at=lot.received_at,
                    sequence=i,
                )
                for i, lot in enumerate(lots)
                if lot.is_legacy and lot.material_id == material_id
            ]
            plan = plan_fifo_depletion(
                candidates=candidates,
                requested=requested,
                allow_negative=True,
            )
            result = self._apply_plan(lots, plan)

            logger.info(
                "legacy_stock_consumed",
                extra={
                    "material_id": material_id,
                    "requested_qty": requested,
                    "deducted_qty": result.deducted_qty,
                    "negative_qty": result.negative_qty,
                },
            )
            return result
