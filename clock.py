from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional, Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    def today(self) -> date: ...

    def current_hour(self) -> int: ...

    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in the sport centre's time zone."""

    def __init__(self, tz_name: str = "Asia/Hong_Kong") -> None:
        self._zone = ZoneInfo(tz_name)

    def now(self) -> datetime:
        return datetime.now(self._zone)

    def today(self) -> date:
        return self.now().date()

    def current_hour(self) -> int:
        return self.now().hour


class FixedClock:
    """A clock that only moves when told to. Used by tests and demos."""

    def __init__(self, moment: Optional[datetime] = None) -> None:
        self._moment = moment or datetime(2030, 1, 1, 8, 0)

    def now(self) -> datetime:
        return self._moment

    def today(self) -> date:
        return self._moment.date()

    def current_hour(self) -> int:
        return self._moment.hour

    def set(self, moment: datetime) -> None:
        self._moment = moment

    def advance(self, hours: int = 1) -> None:
        self._moment += timedelta(hours=hours)


def seconds_until_next_hour(moment: datetime) -> float:
    next_hour = moment.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
    return (next_hour - moment).total_seconds()
