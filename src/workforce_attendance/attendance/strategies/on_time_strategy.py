from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ...shifts.model import ShiftDefinition
from .base import ClockInStrategy, StatusDecision


class OnTimeStrategy(ClockInStrategy):
    """Clock-in at or before the end of the grace period."""

    def decide_clock_in(self, *, now: datetime, shift: ShiftDefinition) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.CLOCKED_IN)
