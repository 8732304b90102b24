"""Lifecycle of the daily attendance record.

    not_started --clock_in--> clocked_in | late
    clocked_in | late --break_start--> on_break --break_end--> (status before the break)
    clocked_in | late --clock_out--> clocked_out   (terminal)

Clock-out while on a break is rejected: the break has to be ended first.
Transition functions never mutate their input; they return the successor
record or raise a DomainError.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional

from ..common.validators import optional_note
from ..core.constants import CLOCK_OUT_NOTE_PREFIX, MAX_STORED_NOTE_LENGTH
from ..core.enums import AttendanceAction, AttendanceStatus, WorkType
from ..core.exceptions import AlreadyClockedIn, InvalidTransition, NoActiveAttendance, ValidationError
from ..shifts.model import ShiftDefinition
from .accountant import compute_break_time, compute_overtime_minutes, compute_work_time
from .model import AttendanceRecord, AvailableActions, BreakInterval, GeoLocation
from .strategies.base import StatusDecision

WORKING_STATUSES = frozenset({AttendanceStatus.CLOCKED_IN, AttendanceStatus.LATE})

_ACTIONS_BY_STATUS = {
    AttendanceStatus.NOT_STARTED: AvailableActions(can_clock_in=True),
    AttendanceStatus.CLOCKED_IN: AvailableActions(can_clock_out=True, can_start_break=True),
    AttendanceStatus.LATE: AvailableActions(can_clock_out=True, can_start_break=True),
    AttendanceStatus.ON_BREAK: AvailableActions(can_end_break=True),
    AttendanceStatus.CLOCKED_OUT: AvailableActions(),
}


def available_actions(status: AttendanceStatus) -> AvailableActions:
    return _ACTIONS_BY_STATUS[status]


def _require_record(record: Optional[AttendanceRecord], action: AttendanceAction) -> AttendanceRecord:
    if record is None:
        raise NoActiveAttendance(f"Cannot {action.value.replace('_', ' ')}: not clocked in today")
    if record.is_closed:
        raise InvalidTransition("Already clocked out for today")
    return record


def clock_in(
    existing: Optional[AttendanceRecord],
    *,
    user_id: int,
    workspace_id: int,
    now: datetime,
    shift: ShiftDefinition,
    decision: StatusDecision,
    work_type: WorkType = WorkType.OFFICE,
    note: Optional[str] = None,
    location: Optional[GeoLocation] = None,
    ip: Optional[str] = None,
    device: Optional[str] = None,
) -> AttendanceRecord:
    if existing is not None:
        raise AlreadyClockedIn("Already clocked in today")
    if decision.status not in WORKING_STATUSES:
        raise InvalidTransition(f"Clock-in cannot start in status {decision.status.value}")

    notes = [n for n in (decision.note, optional_note(note)) if n]
    work_date = now.date()
    return AttendanceRecord(
        attendance_id=None,
        user_id=user_id,
        workspace_id=workspace_id,
        work_date=work_date,
        status=decision.status,
        clock_in=now,
        shift_id=shift.shift_id,
        regular_hours=shift.total_hours,
        work_type=work_type,
        note="\n".join(notes) or None,
        is_weekend=not shift.is_working_day(work_date),
        clock_in_location=location,
        ip=ip,
        device=device,
    )


def start_break(record: Optional[AttendanceRecord], *, now: datetime) -> AttendanceRecord:
    record = _require_record(record, AttendanceAction.START_BREAK)
    if record.open_break is not None or record.status == AttendanceStatus.ON_BREAK:
        raise InvalidTransition("Already on break")
    if record.status not in WORKING_STATUSES:
        raise InvalidTransition("Must be clocked in to start a break")

    return replace(
        record,
        status=AttendanceStatus.ON_BREAK,
        resume_status=record.status,
        breaks=record.breaks + (BreakInterval(start=now),),
    )


def end_break(record: Optional[AttendanceRecord], *, now: datetime) -> AttendanceRecord:
    record = _require_record(record, AttendanceAction.END_BREAK)
    open_break = record.open_break
    if record.status != AttendanceStatus.ON_BREAK or open_break is None:
        raise InvalidTransition("Not currently on break")

    breaks = tuple(replace(b, end=now) if b is open_break else b for b in record.breaks)
    closed = replace(
        record,
        breaks=breaks,
        status=record.resume_status or AttendanceStatus.CLOCKED_IN,
        resume_status=None,
    )
    return replace(closed, total_break_time=compute_break_time(closed, now))


def clock_out(
    record: Optional[AttendanceRecord],
    *,
    now: datetime,
    shift: Optional[ShiftDefinition] = None,
    note: Optional[str] = None,
    location: Optional[GeoLocation] = None,
) -> AttendanceRecord:
    record = _require_record(record, AttendanceAction.CLOCK_OUT)
    if record.status == AttendanceStatus.ON_BREAK:
        raise InvalidTransition("End the current break before clocking out")
    if record.status not in WORKING_STATUSES:
        raise InvalidTransition(f"Cannot clock out from status {record.status.value}")

    work_time = compute_work_time(record, now)
    overtime = compute_overtime_minutes(work_time, record.regular_hours, shift.overtime if shift else None)

    note = optional_note(note)
    combined_note = record.note
    if note:
        line = f"{CLOCK_OUT_NOTE_PREFIX}{note}"
        combined_note = f"{record.note}\n{line}" if record.note else line
        if len(combined_note) > MAX_STORED_NOTE_LENGTH:
            raise ValidationError(f"Notes for the day must be at most {MAX_STORED_NOTE_LENGTH} characters")

    return replace(
        record,
        status=AttendanceStatus.CLOCKED_OUT,
        clock_out=now,
        total_break_time=compute_break_time(record, now),
        total_work_time=work_time,
        overtime_minutes=overtime,
        note=combined_note,
        clock_out_location=location or record.clock_out_location,
    )
