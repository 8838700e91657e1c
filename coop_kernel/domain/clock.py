"""
Clock -- Injectable time source.

Responsibility:
    Services and engines ask a Clock for "today" instead of calling
    ``date.today()``, so the year window of the minimum-balance query, the
    maturity sweep and the alert engine are reproducible in tests.

Architecture position:
    Kernel > Domain -- pure functional core. SystemClock is the only place
    that reads the wall clock.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone, tzinfo


class Clock(ABC):
    """
    Abstract clock interface.

    Guarantees:
        - ``now()`` returns a timezone-aware ``datetime``.
        - ``today()`` is the calendar date of ``now()`` in the clock's zone.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time."""
        ...

    def now_utc(self) -> datetime:
        return self.now().astimezone(timezone.utc)

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """
    Production clock that returns actual system time.

    The cooperative's business day follows its local zone, so a zone can be
    supplied; UTC is used when none is given.
    """

    def __init__(self, tz: tzinfo | None = None):
        self._tz = tz or timezone.utc

    def now(self) -> datetime:
        return datetime.now(self._tz)


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    Accepts either a datetime or a plain date (taken as noon UTC). The value
    does not move until ``advance()``, ``advance_days()`` or ``set_time()``
    is called.
    """

    def __init__(self, fixed_time: datetime | date | None = None):
        self._fixed_time = self._coerce(fixed_time or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc))
        self._offset = timedelta(0)

    @staticmethod
    def _coerce(value: datetime | date) -> datetime:
        if isinstance(value, datetime):
            return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        return datetime(value.year, value.month, value.day, 12, 0, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._fixed_time + self._offset

    def set_time(self, time: datetime | date) -> None:
        self._fixed_time = self._coerce(time)
        self._offset = timedelta(0)

    def advance(self, seconds: int = 1) -> None:
        self._offset += timedelta(seconds=seconds)

    def advance_days(self, days: int = 1) -> None:
        self._offset += timedelta(days=days)
