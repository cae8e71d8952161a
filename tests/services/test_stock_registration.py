"""
Tests for process stock registration.

Covers:
- New lots and additive top-ups
- Validation failures returned as results with error codes
- Exhausted-lot guard
- Process isolation of lot numbers
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from mes_kernel.domain.stock import StockErrorKind


def _register(ledger, process="CA", lot="LOT-001", qty=100, material_id=1, **kw):
    return ledger.register_process_stock(
        process_code=process,
        material_id=material_id,
        material_code=kw.pop("material_code", f"M{material_id:03d}"),
        lot_number=lot,
        quantity=qty,
        material_name=kw.pop("material_name", "전선"),
        **kw,
    )


class TestNewRegistration:
    def test_creates_lot(self, ledger, clock):
        result = _register(ledger)

        assert result.success
        assert result.is_new_entry is True
        assert result.error is None
        stock = result.stock
        assert stock.process_code == "CA"
        assert stock.lot_number == "LOT-001"
        assert stock.quantity == Decimal("100")
        assert stock.used_qty == Decimal("0")
        assert stock.available_qty == Decimal("100")
        assert stock.received_at == clock.now()
        assert stock.id

    def test_received_at_supplied_by_caller(self, ledger):
        when = datetime(2024, 11, 30, 7, 15, tzinfo=timezone.utc)
        result = _register(ledger, received_at=when)

        assert result.stock.received_at == when

    def test_received_at_iso_string(self, ledger):
        result = _register(ledger, received_at="2024-11-30T07:15:00+00:00")

        assert result.stock.received_at == datetime(2024, 11, 30, 7, 15, tzinfo=timezone.utc)

    def test_zero_quantity_accepted(self, ledger):
        result = _register(ledger, qty=0)

        assert result.success
        assert result.stock.available_qty == Decimal("0")

    def test_logs_registration(self, ledger, captured_logs):
        _register(ledger)

        records = [r for r in captured_logs() if r["message"] == "process_stock_registered"]
        assert records
        assert records[-1]["process_code"] == "CA"
        assert records[-1]["is_new_entry"] is True


class TestTopUp:
    def test_additive_merge(self, ledger):
        _register(ledger, qty=100)
        result = _register(ledger, qty=50)

        assert result.success
        assert result.is_new_entry is False
        assert result.stock.quantity == Decimal("150")
        assert result.stock.available_qty == Decimal("150")

    def test_keeps_existing_material_and_received_at(self, ledger, clock):
        first = _register(ledger, material_name="원래 이름")
        clock.advance(3600)
        second = _register(ledger, qty=5, material_name="다른 이름")

        assert second.stock.material_name == "원래 이름"
        assert second.stock.received_at == first.stock.received_at
        assert second.stock.id == first.stock.id

    def test_zero_top_up_is_noop(self, ledger):
        _register(ledger, qty=100)
        result = _register(ledger, qty=0)

        assert result.success
        assert result.is_new_entry is False
        assert result.stock.quantity == Decimal("100")

    def test_top_up_after_partial_use(self, ledger):
        _register(ledger, qty=100)
        ledger.consume_process_stock("CA", 1, 60)
        result = _register(ledger, qty=10)

        assert result.success
        assert result.stock.quantity == Decimal("110")
        assert result.stock.used_qty == Decimal("60")
        assert result.stock.available_qty == Decimal("50")


class TestValidation:
    @pytest.mark.parametrize("process", ["", "   ", None])
    def test_missing_process(self, ledger, process):
        result = _register(ledger, process=process)

        assert not result.success
        assert result.error_code is StockErrorKind.MISSING_PROCESS
        assert result.error
        assert result.stock is None

    @pytest.mark.parametrize("lot", ["", None])
    def test_missing_lot(self, ledger, lot):
        result = _register(ledger, lot=lot)

        assert result.error_code is StockErrorKind.MISSING_LOT

    def test_negative_quantity(self, ledger):
        result = _register(ledger, qty=-1)

        assert result.error_code is StockErrorKind.INVALID_QUANTITY

    def test_non_numeric_quantity(self, ledger):
        result = _register(ledger, qty="abc")

        assert result.error_code is StockErrorKind.INVALID_QUANTITY

    def test_unparseable_received_at(self, ledger):
        result = _register(ledger, received_at="not-a-date")

        assert result.success is False
        assert result.error_code is StockErrorKind.INVALID_RECEIVED_AT
        assert "not-a-date" in result.error
        assert ledger.get_all_stocks() == []

    def test_unparseable_received_at_rejects_top_up(self, ledger):
        _register(ledger, qty=10)
        result = _register(ledger, qty=5, received_at="31/12/2024")

        assert result.error_code is StockErrorKind.INVALID_RECEIVED_AT
        assert ledger.get_process_stock_by_lot("CA", "LOT-001").quantity == Decimal("10")

    def test_quantity_checked_before_received_at(self, ledger):
        result = _register(ledger, qty=-1, received_at="not-a-date")

        assert result.error_code is StockErrorKind.INVALID_QUANTITY

    def test_process_checked_before_lot_and_quantity(self, ledger):
        result = _register(ledger, process="", lot="", qty=-5)

        assert result.error_code is StockErrorKind.MISSING_PROCESS

    def test_lot_checked_before_quantity(self, ledger):
        result = _register(ledger, lot="", qty=-5)

        assert result.error_code is StockErrorKind.MISSING_LOT

    def test_failures_do_not_create_lots(self, ledger):
        _register(ledger, process="")
        _register(ledger, qty=-1)

        assert ledger.get_all_stocks() == []

    def test_rejection_logged(self, ledger, captured_logs):
        _register(ledger, qty=-1)

        records = [
            r for r in captured_logs()
            if r["message"] == "process_stock_registration_rejected"
        ]
        assert records[-1]["error_code"] == "INVALID_QUANTITY"


class TestExhaustedGuard:
    def _exhaust(self, ledger):
        _register(ledger, qty=100)
        ledger.consume_process_stock("CA", 1, 100)

    def test_exhausted_lot_rejected(self, ledger):
        self._exhaust(ledger)
        result = _register(ledger, qty=50)

        assert not result.success
        assert result.error_code is StockErrorKind.LOT_EXHAUSTED
        assert "LOT-001" in result.error

    def test_exhausted_rejects_zero_quantity(self, ledger):
        self._exhaust(ledger)
        result = _register(ledger, qty=0)

        assert result.error_code is StockErrorKind.LOT_EXHAUSTED

    def test_exhausted_lot_unchanged(self, ledger):
        self._exhaust(ledger)
        _register(ledger, qty=50)

        lot = ledger.get_process_stock_by_lot("CA", "LOT-001")
        assert lot.quantity == Decimal("100")
        assert lot.used_qty == Decimal("100")

    def test_unused_zero_lot_is_not_exhausted(self, ledger):
        _register(ledger, qty=0)
        result = _register(ledger, qty=20)

        assert result.success
        assert result.stock.quantity == Decimal("20")

    def test_same_lot_in_other_process_still_registrable(self, ledger):
        self._exhaust(ledger)
        result = _register(ledger, process="MC", qty=30)

        assert result.success
        assert result.is_new_entry is True


class TestProcessIsolation:
    def test_same_lot_number_is_independent_per_process(self, ledger):
        _register(ledger, process="CA", qty=100)
        _register(ledger, process="MC", qty=40)

        assert ledger.get_process_stock_by_lot("CA", "LOT-001").quantity == Decimal("100")
        assert ledger.get_process_stock_by_lot("MC", "LOT-001").quantity == Decimal("40")
        assert len(ledger.get_all_stocks()) == 2

    def test_lot_number_match_is_case_sensitive(self, ledger):
        _register(ledger, lot="lot-a")
        result = _register(ledger, lot="LOT-A")

        assert result.is_new_entry is True
