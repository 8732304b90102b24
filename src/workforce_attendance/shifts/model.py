from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Optional

from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class OvertimePolicy:
    allow_overtime: bool = True
    max_overtime_hours: Optional[float] = 4.0
    multiplier: float = 1.5


@dataclass(frozen=True)
class ShiftDefinition:
    """Domain entity: an expected work schedule for a workspace.

    Shifts are managed elsewhere; attendance only reads them.
    """

    shift_id: int
    workspace_id: int
    name: str
    start_time: time
    end_time: time
    total_hours: float
    break_minutes: int = 60
    grace_minutes: int = 15
    overtime: OvertimePolicy = field(default_factory=OvertimePolicy)
    is_default: bool = False
    is_active: bool = True
    working_days: tuple[int, ...] = (0, 1, 2, 3, 4)

    def __post_init__(self):
        if not self.total_hours or self.total_hours <= 0:
            raise ValidationError("Shift total hours must be greater than zero")

    def start_on(self, work_date: date) -> datetime:
        return datetime.combine(work_date, self.start_time)

    def grace_deadline(self, work_date: date) -> datetime:
        """Latest on-time arrival for the given date (inclusive)."""
        return self.start_on(work_date) + timedelta(minutes=self.grace_minutes)

    def is_working_day(self, work_date: date) -> bool:
        return work_date.weekday() in self.working_days

    @property
    def duration(self) -> timedelta:
        return timedelta(hours=self.total_hours)

    @property
    def time_range(self) -> str:
        return f"{self.start_time.strftime('%H:%M')} - {self.end_time.strftime('%H:%M')}"
