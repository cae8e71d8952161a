"""
Clock -- injectable time source.

Ledger and collection code take a Clock in their constructor and never
call ``datetime.now()`` themselves.  Lot ``received_at`` (the FIFO key),
"today" for receivings and record registration dates all come from it.

Plant-local days are computed in the plant timezone, not UTC: a lot
scanned at 06:30 in Ho Chi Minh City belongs to that local day even
though it is still the previous day in UTC.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo


class Clock(ABC):
    """``now()`` always returns an aware datetime."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self, tz: ZoneInfo | str | None = None) -> date:
        """Calendar date of ``now()`` in ``tz`` (UTC when omitted)."""
        if tz is None:
            zone = timezone.utc
        elif isinstance(tz, str):
            zone = ZoneInfo(tz)
        else:
            zone = tz
        return self.now().astimezone(zone).date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock that only moves when told to.

    Guarantees:
        - ``now()`` is stable between calls to ``advance()`` / ``tick()``.
        - ``tick()`` moves exactly one second, so successive registrations
          get strictly increasing ``received_at``.
    """

    DEFAULT_START = datetime(2024, 12, 23, 9, 0, 0, tzinfo=timezone.utc)

    def __init__(self, start: datetime | None = None):
        self._current = start or self.DEFAULT_START

    def now(self) -> datetime:
        return self._current

    def advance(self, seconds: float = 1) -> None:
        self._current += timedelta(seconds=seconds)

    def tick(self) -> datetime:
        self.advance(1)
        return self._current
