from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ...shifts.model import ShiftDefinition
from ..accountant import minutes_late
from .base import ClockInStrategy, StatusDecision


class LateStrategy(ClockInStrategy):
    """Late clock-in."""

    def decide_clock_in(self, *, now: datetime, shift: ShiftDefinition) -> StatusDecision:
        return StatusDecision(
            status=AttendanceStatus.LATE,
            note=f"Late by {minutes_late(shift, now)} min ({shift.name})",
        )
