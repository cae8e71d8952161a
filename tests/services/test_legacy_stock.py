"""
Tests for the legacy process-agnostic receiving path.

Covers:
- receive_stock merge semantics (no exhausted guard)
- Coexistence with process-scoped lots of the same number
- consume_stock_fifo_with_negative
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from mes_kernel.domain.stock import LotDraw, StockErrorKind

T0 = datetime(2024, 12, 20, 8, 0, tzinfo=timezone.utc)


def _receive(ledger, lot, qty, material_id=1, at=None):
    return ledger.receive_stock(
        material_id=material_id,
        material_code=f"M{material_id:03d}",
        lot_number=lot,
        quantity=qty,
        received_at=at,
    )


class TestReceiveStock:
    def test_creates_unassigned_lot(self, ledger):
        result = _receive(ledger, "LOT-OLD", 100)

        assert result.success
        assert result.is_new_entry is True
        assert result.stock.process_code is None
        assert result.stock.is_legacy

    def test_merges_additively(self, ledger):
        _receive(ledger, "LOT-OLD", 100)
        result = _receive(ledger, "LOT-OLD", 20)

        assert result.is_new_entry is False
        assert result.stock.quantity == Decimal("120")

    def test_no_exhausted_guard(self, ledger):
        _receive(ledger, "LOT-OLD", 10)
        ledger.consume_stock_fifo_with_negative(1, 10)

        result = _receive(ledger, "LOT-OLD", 5)

        assert result.success
        assert result.stock.available_qty == Decimal("5")

    def test_validates_lot_and_quantity(self, ledger):
        assert _receive(ledger, "", 1).error_code is StockErrorKind.MISSING_LOT
        assert _receive(ledger, "L1", -1).error_code is StockErrorKind.INVALID_QUANTITY

    def test_unparseable_received_at(self, ledger):
        result = _receive(ledger, "L1", 5, at="not-a-date")

        assert result.error_code is StockErrorKind.INVALID_RECEIVED_AT
        assert ledger.get_unassigned_stocks() == []


class TestCoexistence:
    def test_get_all_stocks_returns_both_kinds(self, ledger):
        _receive(ledger, "LOT-OLD", 100)
        ledger.register_process_stock(
            process_code="CA",
            material_id=2,
            material_code="M002",
            material_name="자재2",
            lot_number="LOT-NEW",
            quantity=200,
        )

        stocks = ledger.get_all_stocks()

        assert [s.lot_number for s in stocks] == ["LOT-OLD", "LOT-NEW"]
        assert [s.lot_number for s in ledger.get_unassigned_stocks()] == ["LOT-OLD"]

    def test_same_lot_number_distinct_records(self, ledger):
        _receive(ledger, "L1", 100)
        ledger.register_process_stock(
            process_code="CA",
            material_id=1,
            material_code="M001",
            lot_number="L1",
            quantity=10,
        )
        ledger.consume_process_stock("CA", 1, 10)

        legacy = ledger.get_unassigned_stocks()[0]
        assert legacy.used_qty == Decimal("0")
        assert ledger.check_process_stock_status("CA", "L1").is_exhausted

    def test_legacy_lot_invisible_to_process_queries(self, ledger):
        _receive(ledger, "L1", 100)

        assert ledger.get_process_stock_by_lot("CA", "L1") is None
        assert ledger.get_stocks_by_process("CA") == []


class TestConsumeWithNegative:
    def test_plain_consumption(self, ledger):
        _receive(ledger, "LOT-001", 100)

        result = ledger.consume_stock_fifo_with_negative(1, 50)

        assert result.deducted_qty == Decimal("50")
        assert len(result.lots) == 1
        assert result.negative_qty == Decimal("0")

    def test_fifo_across_legacy_lots(self, ledger):
        _receive(ledger, "NEW", 10, at=T0 + timedelta(hours=1))
        _receive(ledger, "OLD", 10, at=T0)

        result = ledger.consume_stock_fifo_with_negative(1, 15)

        assert result.lots == (LotDraw("OLD", Decimal("10")), LotDraw("NEW", Decimal("5")))

    def test_excess_booked_as_negative_on_newest(self, ledger):
        _receive(ledger, "OLD", 10, at=T0)
        _receive(ledger, "NEW", 10, at=T0 + timedelta(hours=1))

        result = ledger.consume_stock_fifo_with_negative(1, 30)

        assert result.deducted_qty == Decimal("30")
        assert result.negative_qty == Decimal("10")
        assert result.shortfall == Decimal("0")
        newest = next(s for s in ledger.get_all_stocks() if s.lot_number == "NEW")
        assert newest.available_qty == Decimal("-10")

    def test_no_legacy_lot_reports_shortfall(self, ledger):
        ledger.register_process_stock(
            process_code="CA", material_id=1, material_code="M001",
            lot_number="P1", quantity=100,
        )

        result = ledger.consume_stock_fifo_with_negative(1, 5)

        assert result.deducted_qty == Decimal("0")
        assert result.shortfall == Decimal("5")
        assert ledger.get_process_available_qty("CA", 1) == Decimal("100")
