"""
Injectable time source.

The synchronizer needs "today" to place the generation window of open-ended
entries and the applier stamps applied_at with "now". Both take a Clock so
tests can pin time without patching datetime.
"""
from abc import ABC, abstractmethod
from datetime import date, datetime


class Clock(ABC):

    @abstractmethod
    def now(self) -> datetime:
        """Current naive UTC datetime (the DateTime columns store naive UTC)."""
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Wall-clock time."""

    def now(self) -> datetime:
        return datetime.utcnow()


class FixedClock(Clock):
    """Clock frozen at a given instant. Accepts a date for midnight."""

    def __init__(self, at: datetime | date):
        if not isinstance(at, datetime):
            at = datetime(at.year, at.month, at.day)
        self._at = at

    def now(self) -> datetime:
        return self._at

    def advance_to(self, at: datetime | date) -> None:
        if not isinstance(at, datetime):
            at = datetime(at.year, at.month, at.day)
        self._at = at
