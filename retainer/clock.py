"""
retainer.clock
==============

Injectable time source.  The store asks its clock for "now" instead of
calling :pyfunc:`datetime.now` so sweeps can be driven deterministically.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone


class Clock(ABC):
    """Abstract clock; ``now()`` must return a timezone‑aware datetime."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Wall‑clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """
    Clock frozen at a given instant until moved explicitly.

    >>> clock = FixedClock(datetime(2024, 7, 1, tzinfo=timezone.utc))
    >>> clock.advance(days=1).today()
    datetime.date(2024, 7, 2)
    """

    def __init__(self, current: datetime) -> None:
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        self._current = current

    def now(self) -> datetime:
        return self._current

    def set(self, current: datetime) -> None:
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        self._current = current

    def advance(self, **delta) -> "FixedClock":
        self._current += timedelta(**delta)
        return self
