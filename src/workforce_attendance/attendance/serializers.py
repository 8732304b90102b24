from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from ..core.enums import AttendanceStatus
from ..shifts.model import ShiftDefinition
from .accountant import format_duration
from .model import AttendanceRecord, GeoLocation, HistoryPage, TodayStatus

DISPLAY_STATUS = {
    AttendanceStatus.NOT_STARTED: "Not started",
    AttendanceStatus.CLOCKED_IN: "Working",
    AttendanceStatus.LATE: "Late",
    AttendanceStatus.ON_BREAK: "On Break",
    AttendanceStatus.CLOCKED_OUT: "Finished",
}


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _minutes(value: Optional[timedelta]) -> Optional[int]:
    return int(value.total_seconds() // 60) if value is not None else None


def _location(value: Optional[GeoLocation]) -> Optional[dict]:
    return value.as_dict() if value else None


def shift_to_dict(shift: Optional[ShiftDefinition]) -> Optional[dict]:
    if shift is None:
        return None
    return {
        "id": shift.shift_id,
        "name": shift.name,
        "startTime": shift.start_time.strftime("%H:%M"),
        "endTime": shift.end_time.strftime("%H:%M"),
        "totalHours": shift.total_hours,
        "graceTime": shift.grace_minutes,
        "timeRange": shift.time_range,
    }


def record_to_dict(r: Optional[AttendanceRecord]) -> Optional[dict]:
    if r is None:
        return None
    return {
        "id": r.attendance_id,
        "userId": r.user_id,
        "workspaceId": r.workspace_id,
        "date": r.work_date.strftime("%Y-%m-%d"),
        "status": r.status.value,
        "displayStatus": DISPLAY_STATUS.get(r.status, r.status.value),
        "clockIn": _iso(r.clock_in),
        "clockOut": _iso(r.clock_out),
        "breaks": [{"start": _iso(b.start), "end": _iso(b.end)} for b in r.breaks],
        "totalBreakTime": _minutes(r.total_break_time),
        "totalWorkTime": _minutes(r.total_work_time),
        "workDuration": format_duration(r.total_work_time) if r.total_work_time is not None else "Still working...",
        "overtimeMinutes": r.overtime_minutes,
        "shiftId": r.shift_id,
        "workType": r.work_type.value,
        "notes": r.note,
        "isWeekend": r.is_weekend,
        "location": {
            "clockInLocation": _location(r.clock_in_location),
            "clockOutLocation": _location(r.clock_out_location),
        },
        "ip": r.ip,
        "device": r.device,
    }


def today_status_to_dict(status: TodayStatus) -> dict:
    attendance = record_to_dict(status.record)
    if attendance is not None and not status.record.is_closed:
        # The stored total only covers closed breaks.
        attendance["totalBreakTime"] = _minutes(status.current_break_time)
    return {
        "attendance": attendance,
        "status": status.status.value,
        "shift": shift_to_dict(status.shift),
        "actions": status.actions.as_dict(),
        "currentWorkTime": _minutes(status.current_work_time),
        "currentBreakTime": _minutes(status.current_break_time),
        "expectedClockOut": _iso(status.expected_clock_out),
    }


def history_to_dict(page: HistoryPage) -> dict:
    return {
        "attendanceRecords": [record_to_dict(r) for r in page.records],
        "pagination": {
            "page": page.page,
            "limit": page.limit,
            "total": page.total,
            "pages": page.pages,
        },
    }
