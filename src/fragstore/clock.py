"""Injectable clocks for fragment timestamps."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Anything that can tell the current time."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class ManualClock:
    """A clock that only moves when told to.

    Each ``now()`` returns the current instant and then advances it by
    ``step``, so consecutive reads are strictly increasing when step > 0.
    """

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(0)) -> None:
        self._current = start or datetime(2024, 1, 1, tzinfo=UTC)
        self._step = step

    def now(self) -> datetime:
        current = self._current
        self._current = current + self._step
        return current

    def advance(self, delta: timedelta) -> None:
        self._current += delta

    def set(self, instant: datetime) -> None:
        self._current = instant


SYSTEM_CLOCK = SystemClock()
