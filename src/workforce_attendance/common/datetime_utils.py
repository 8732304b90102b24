from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Protocol


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


class Clock(Protocol):
    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock:
    """Current local time.

    Note: Injected into services so tests can pass a fixed clock instead.
    """

    def now(self) -> datetime:
        return datetime.now()


class FixedClock:
    def __init__(self, at: datetime):
        self.at = at

    def now(self) -> datetime:
        return self.at

    def advance(self, delta: timedelta) -> datetime:
        self.at = self.at + delta
        return self.at


def whole_minutes(delta: timedelta) -> int:
    return int(delta.total_seconds() // 60)
