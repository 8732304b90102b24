from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from ..core.constants import DEFAULT_REGULAR_HOURS
from ..core.enums import AttendanceStatus, WorkType
from ..shifts.model import ShiftDefinition


@dataclass(frozen=True)
class BreakInterval:
    start: datetime
    end: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.end is None


@dataclass(frozen=True)
class GeoLocation:
    """Where an action was taken, as reported by the client."""

    latitude: float
    longitude: float
    address: Optional[str] = None

    def as_dict(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude, "address": self.address}


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one user's attendance in one workspace for one day.

    Records are immutable values; every transition produces a successor
    record which the repository swaps in atomically. ``revision`` is bumped by
    the store on each successful swap.
    """

    attendance_id: Optional[int]
    user_id: int
    workspace_id: int
    work_date: date
    status: AttendanceStatus
    clock_in: datetime
    clock_out: Optional[datetime] = None
    breaks: tuple[BreakInterval, ...] = ()
    resume_status: Optional[AttendanceStatus] = None
    total_break_time: timedelta = timedelta(0)
    total_work_time: Optional[timedelta] = None
    overtime_minutes: int = 0
    shift_id: Optional[int] = None
    regular_hours: float = DEFAULT_REGULAR_HOURS
    work_type: WorkType = WorkType.OFFICE
    note: Optional[str] = None
    is_weekend: bool = False
    clock_in_location: Optional[GeoLocation] = None
    clock_out_location: Optional[GeoLocation] = None
    ip: Optional[str] = None
    device: Optional[str] = None
    revision: int = 0

    @property
    def open_break(self) -> Optional[BreakInterval]:
        for b in self.breaks:
            if b.is_open:
                return b
        return None

    @property
    def is_closed(self) -> bool:
        return self.status == AttendanceStatus.CLOCKED_OUT


@dataclass(frozen=True)
class AvailableActions:
    can_clock_in: bool = False
    can_clock_out: bool = False
    can_start_break: bool = False
    can_end_break: bool = False

    def as_dict(self) -> dict:
        return {
            "canClockIn": self.can_clock_in,
            "canClockOut": self.can_clock_out,
            "canStartBreak": self.can_start_break,
            "canEndBreak": self.can_end_break,
        }


@dataclass(frozen=True)
class TodayStatus:
    record: Optional[AttendanceRecord]
    shift: Optional[ShiftDefinition]
    actions: AvailableActions
    current_work_time: timedelta
    current_break_time: timedelta
    expected_clock_out: Optional[datetime]

    @property
    def status(self) -> AttendanceStatus:
        return self.record.status if self.record else AttendanceStatus.NOT_STARTED


@dataclass(frozen=True)
class HistoryPage:
    records: list[AttendanceRecord]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0
