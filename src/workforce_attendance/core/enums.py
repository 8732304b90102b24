from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Daily attendance state. NOT_STARTED is never stored."""

    NOT_STARTED = "not_started"
    CLOCKED_IN = "clocked_in"
    LATE = "late"
    ON_BREAK = "on_break"
    CLOCKED_OUT = "clocked_out"


STORED_STATUSES = (
    AttendanceStatus.CLOCKED_IN,
    AttendanceStatus.LATE,
    AttendanceStatus.ON_BREAK,
    AttendanceStatus.CLOCKED_OUT,
)


class AttendanceAction(str, Enum):
    CLOCK_IN = "clock_in"
    START_BREAK = "break_start"
    END_BREAK = "break_end"
    CLOCK_OUT = "clock_out"


class WorkType(str, Enum):
    OFFICE = "office"
    REMOTE = "remote"
    HYBRID = "hybrid"
    FIELD = "field"
