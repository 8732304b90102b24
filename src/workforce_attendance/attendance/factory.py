from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..shifts.model import ShiftDefinition
from .accountant import is_late
from .strategies.base import ClockInStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.on_time_strategy import OnTimeStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose the clock-in strategy from the shift's grace window."""

    def for_clock_in(self, *, now: datetime, shift: ShiftDefinition) -> ClockInStrategy:
        if is_late(shift, now):
            return LateStrategy()
        return OnTimeStrategy()
