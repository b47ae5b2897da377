"""
Clock -- injectable time source.

Responsibility:
    Services never call ``datetime.now()`` directly.  Every ``created_at``
    an OrderService call writes, the sale history timestamps and the date
    token of a new order code all come from the Clock handed to the
    service.  Tests pin time with DeterministicClock so ordering by
    created_at and the daily code sequence are reproducible.

Architecture position:
    Kernel > Domain.  SystemClock is the only place that reads wall time.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone

DEFAULT_TEST_TIME = datetime(2024, 12, 11, 9, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """
    Time source for services.

    Guarantees:
        - ``now_utc()`` is timezone-aware and in UTC.
        - ``today()`` is the UTC calendar date of ``now_utc()``; order codes
          roll over at UTC midnight.
    """

    @abstractmethod
    def now_utc(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now_utc().date()


class SystemClock(Clock):
    """Wall-clock time."""

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    Starts at 2024-12-11 09:00 UTC unless given a start time.  Naive start
    times are taken as UTC.
    """

    def __init__(self, start: datetime | None = None):
        self._start = _as_utc(start or DEFAULT_TEST_TIME)
        self._offset = timedelta()

    def now_utc(self) -> datetime:
        return self._start + self._offset

    def set_time(self, time: datetime) -> None:
        """Jump to ``time`` and forget earlier advances."""
        self._start = _as_utc(time)
        self._offset = timedelta()

    def advance(self, seconds: int = 1) -> None:
        self._offset += timedelta(seconds=seconds)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
