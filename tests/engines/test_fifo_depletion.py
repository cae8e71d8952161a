"""
Tests for the FIFO depletion planner.

Covers:
- Oldest-first ordering by received_at
- Stable tie-break on registration order
- Capping at available quantity
- Negative booking on the newest candidate
- Edge cases (no candidates, non-positive requests)
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from mes_engines.fifo import FifoCandidate, plan_fifo_depletion

T0 = datetime(2024, 12, 1, 8, 0, tzinfo=timezone.utc)


def _candidate(lot: str, available: str, minutes: int = 0, sequence: int = 0) -> FifoCandidate:
    return FifoCandidate(
        key=f"id-{lot}",
        lot_number=lot,
        available=Decimal(available),
        received_at=T0 + timedelta(minutes=minutes),
        sequence=sequence,
    )


class TestFifoOrdering:
    """Draw order follows received_at, then registration order."""

    def test_oldest_lot_drained_first(self):
        plan = plan_fifo_depletion(
            candidates=[
                _candidate("L2", "100", minutes=10, sequence=0),
                _candidate("L1", "100", minutes=0, sequence=1),
            ],
            requested=Decimal("150"),
        )

        assert [(d.lot_number, d.quantity) for d in plan.draws] == [
            ("L1", Decimal("100")),
            ("L2", Decimal("50")),
        ]
        assert plan.allocated == Decimal("150")
        assert plan.remaining == Decimal("0")

    def test_ties_broken_by_registration_order(self):
        plan = plan_fifo_depletion(
            candidates=[
                _candidate("B", "10", minutes=0, sequence=1),
                _candidate("A", "10", minutes=0, sequence=0),
            ],
            requested=Decimal("15"),
        )

        assert [d.lot_number for d in plan.draws] == ["A", "B"]

    def test_stops_once_satisfied(self):
        plan = plan_fifo_depletion(
            candidates=[
                _candidate("L1", "100", minutes=0, sequence=0),
                _candidate("L2", "100", minutes=1, sequence=1),
            ],
            requested=Decimal("40"),
        )

        assert len(plan.draws) == 1
        assert plan.draws[0].quantity == Decimal("40")


class TestFifoCapping:
    """Over-consumption is capped at what is available."""

    def test_capped_at_total_available(self):
        plan = plan_fifo_depletion(
            candidates=[
                _candidate("L1", "30", sequence=0),
                _candidate("L2", "20", minutes=1, sequence=1),
            ],
            requested=Decimal("80"),
        )

        assert plan.allocated == Decimal("50")
        assert plan.remaining == Decimal("30")
        assert plan.negative == Decimal("0")

    def test_zero_available_candidates_skipped(self):
        plan = plan_fifo_depletion(
            candidates=[
                _candidate("EMPTY", "0", minutes=0, sequence=0),
                _candidate("L2", "5", minutes=1, sequence=1),
            ],
            requested=Decimal("5"),
        )

        assert [d.lot_number for d in plan.draws] == ["L2"]

    def test_no_candidates(self):
        plan = plan_fifo_depletion(candidates=[], requested=Decimal("10"))

        assert plan.draws == ()
        assert plan.remaining == Decimal("10")

    @pytest.mark.parametrize("requested", ["0", "-5"])
    def test_non_positive_request_is_empty(self, requested):
        plan = plan_fifo_depletion(
            candidates=[_candidate("L1", "10")],
            requested=Decimal(requested),
        )

        assert plan.draws == ()

    def test_requested_must_be_decimal(self):
        with pytest.raises(ValueError, match="Decimal"):
            plan_fifo_depletion(candidates=[], requested=10)


class TestNegativeBooking:
    """allow_negative books the excess on the newest candidate."""

    def test_excess_merged_into_newest_draw(self):
        plan = plan_fifo_depletion(
            candidates=[
                _candidate("OLD", "10", minutes=0, sequence=0),
                _candidate("NEW", "10", minutes=5, sequence=1),
            ],
            requested=Decimal("25"),
            allow_negative=True,
        )

        assert [(d.lot_number, d.quantity) for d in plan.draws] == [
            ("OLD", Decimal("10")),
            ("NEW", Decimal("15")),
        ]
        assert plan.negative == Decimal("5")
        assert plan.allocated == Decimal("25")

    def test_excess_on_drained_newest_lot(self):
        plan = plan_fifo_depletion(
            candidates=[
                _candidate("OLD", "10", minutes=0, sequence=0),
                _candidate("NEW", "0", minutes=5, sequence=1),
            ],
            requested=Decimal("12"),
            allow_negative=True,
        )

        assert [(d.lot_number, d.quantity) for d in plan.draws] == [
            ("OLD", Decimal("10")),
            ("NEW", Decimal("2")),
        ]
        assert plan.negative == Decimal("2")

    def test_no_candidates_leaves_remainder(self):
        plan = plan_fifo_depletion(
            candidates=[],
            requested=Decimal("7"),
            allow_negative=True,
        )

        assert plan.draws == ()
        assert plan.remaining == Decimal("7")


class TestFifoTrace:
    def test_emits_engine_trace(self, captured_logs):
        plan_fifo_depletion(candidates=[], requested=Decimal("1"))

        traces = [r for r in captured_logs() if r["message"] == "MES_ENGINE_TRACE"]
        assert traces
        assert traces[-1]["engine_name"] == "fifo_depletion"
        assert len(traces[-1]["input_fingerprint"]) == 16
