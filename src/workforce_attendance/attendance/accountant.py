"""Time arithmetic over attendance records.

Every function here is pure: "now" is always an argument, never read from the
system clock.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from ..common.datetime_utils import whole_minutes
from ..shifts.model import OvertimePolicy, ShiftDefinition
from .model import AttendanceRecord

ZERO = timedelta(0)


def _clamped(delta: timedelta) -> timedelta:
    return delta if delta > ZERO else ZERO


def compute_break_time(record: AttendanceRecord, now: datetime) -> timedelta:
    """Closed breaks plus the elapsed part of the open one, if any."""
    total = ZERO
    for b in record.breaks:
        end = b.end if b.end is not None else now
        total += _clamped(end - b.start)
    return total


def compute_work_time(record: AttendanceRecord, now: datetime) -> timedelta:
    """Elapsed work time net of breaks.

    A clocked-out record answers its persisted total; it is never recomputed
    from the raw intervals once closed.
    """
    if record.is_closed:
        return record.total_work_time if record.total_work_time is not None else ZERO

    return _clamped((now - record.clock_in) - compute_break_time(record, now))


def compute_expected_clock_out(
    record: Optional[AttendanceRecord], shift: Optional[ShiftDefinition]
) -> Optional[datetime]:
    # Offset from the actual clock-in, not the nominal shift start.
    if record is None or shift is None or record.clock_in is None or record.is_closed:
        return None
    return record.clock_in + shift.duration


def is_late(shift: ShiftDefinition, clock_in_instant: datetime) -> bool:
    return clock_in_instant > shift.grace_deadline(clock_in_instant.date())


def minutes_late(shift: ShiftDefinition, clock_in_instant: datetime) -> int:
    """Whole minutes after the nominal shift start; 0 when on time."""
    if not is_late(shift, clock_in_instant):
        return 0
    return whole_minutes(clock_in_instant - shift.start_on(clock_in_instant.date()))


def compute_overtime_minutes(
    work_time: timedelta,
    regular_hours: float,
    policy: Optional[OvertimePolicy] = None,
) -> int:
    if policy is not None and not policy.allow_overtime:
        return 0

    extra = whole_minutes(work_time) - int(round(regular_hours * 60))
    if extra <= 0:
        return 0
    if policy is not None and policy.max_overtime_hours is not None:
        extra = min(extra, int(round(policy.max_overtime_hours * 60)))
    return extra


def format_duration(delta: timedelta) -> str:
    minutes = whole_minutes(_clamped(delta))
    return f"{minutes // 60}h {minutes % 60}m"
