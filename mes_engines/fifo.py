"""
Module: mes_engines.fifo
Responsibility:
    Plan oldest-first depletion of a requested quantity across lots.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import mes_kernel/domain/values.  The StockLedger builds
    candidates from its lots and applies the returned plan.

Invariants enforced:
    - Candidates are ordered by (received_at, sequence); ``sequence`` is
      the registration order, so ties on received_at are stable.
    - Candidates with no positive availability are never drawn from.
    - total drawn <= requested, and each draw <= its candidate's
      availability, unless ``allow_negative`` is set.
    - With ``allow_negative``, any remainder after draining is booked on
      the newest candidate (merged into its draw when it was already drawn).

Failure modes:
    - ValueError if ``requested`` is not a Decimal.

Usage:
    from mes_engines.fifo import FifoCandidate, plan_fifo_depletion

    plan = plan_fifo_depletion(candidates=lots, requested=Decimal("150"))
    for draw in plan.draws:
        ...
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from mes_engines.tracer import traced_engine
from mes_kernel.domain.values import ZERO


@dataclass(frozen=True, slots=True)
class FifoCandidate:
    """A lot that may be drawn from."""

    key: str
    lot_number: str
    available: Decimal
    received_at: datetime
    sequence: int


@dataclass(frozen=True, slots=True)
class FifoDraw:
    """Quantity to take from one candidate."""

    key: str
    lot_number: str
    quantity: Decimal


@dataclass(frozen=True, slots=True)
class FifoPlan:
    """Ordered draws for one depletion request."""

    requested: Decimal
    draws: tuple[FifoDraw, ...]
    negative: Decimal = ZERO

    @property
    def allocated(self) -> Decimal:
        return sum((d.quantity for d in self.draws), ZERO)

    @property
    def remaining(self) -> Decimal:
        return max(self.requested - self.allocated, ZERO)


def _fifo_order(candidates: Sequence[FifoCandidate]) -> list[FifoCandidate]:
    return sorted(candidates, key=lambda c: (c.received_at, c.sequence))


@traced_engine("fifo_depletion", "1.0", fingerprint_fields=("requested", "allow_negative"))
def plan_fifo_depletion(
    candidates: Sequence[FifoCandidate],
    requested: Decimal,
    allow_negative: bool = False,
) -> FifoPlan:
    """
    Draw ``requested`` from ``candidates`` oldest first.

    Postconditions:
        - ``draws`` follow FIFO order; a candidate appears at most once.
        - Without ``allow_negative``, ``allocated`` is
          min(requested, total positive availability).
        - ``requested <= 0`` yields an empty plan.
    """
    if not isinstance(requested, Decimal):
        raise ValueError(f"requested must be Decimal, got {type(requested).__name__}")

    if requested <= 0:
        return FifoPlan(requested=requested, draws=())

    ordered = _fifo_order(candidates)
    draws: list[FifoDraw] = []
    remaining = requested

    for candidate in ordered:
        if remaining <= 0:
            break
        if candidate.available <= 0:
            continue
        take = min(candidate.available, remaining)
        draws.append(FifoDraw(candidate.key, candidate.lot_number, take))
        remaining -= take

    if remaining <= 0 or not allow_negative or not ordered:
        return FifoPlan(requested=requested, draws=tuple(draws))

    newest = ordered[-1]
    for i, draw in enumerate(draws):
        if draw.key == newest.key:
            draws[i] = FifoDraw(draw.key, draw.lot_number, draw.quantity + remaining)
            break
    else:
        draws.append(FifoDraw(newest.key, newest.lot_number, remaining))

    return FifoPlan(requested=requested, draws=tuple(draws), negative=remaining)
