from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime, time
from typing import Optional

import pytest

from workforce_attendance.attendance.model import AttendanceRecord
from workforce_attendance.attendance.service import AttendanceService
from workforce_attendance.common.datetime_utils import FixedClock
from workforce_attendance.core.enums import AttendanceStatus
from workforce_attendance.shifts.model import ShiftDefinition

WORKSPACE_ID = 10
USER_ID = 1


class InMemoryShifts:
    def __init__(self, shifts: dict[int, ShiftDefinition]):
        self.shifts = shifts

    def get_by_id(self, shift_id: int) -> Optional[ShiftDefinition]:
        return self.shifts.get(shift_id)

    def get_default_shift(self, workspace_id: int) -> Optional[ShiftDefinition]:
        for s in self.shifts.values():
            if s.workspace_id == workspace_id and s.is_default and s.is_active:
                return s
        return None


class InMemoryAttendance:
    """Thread-safe store honouring the unique identity and compare-and-swap contract."""

    def __init__(self):
        self._lock = threading.Lock()
        self._by_identity: dict[tuple[int, int, date], AttendanceRecord] = {}
        self._id = 0
        self.transition_calls = 0

    def get_for_user_and_date(self, user_id: int, workspace_id: int, work_date: date) -> Optional[AttendanceRecord]:
        return self._by_identity.get((user_id, workspace_id, work_date))

    def create_if_absent(self, record: AttendanceRecord) -> Optional[int]:
        key = (record.user_id, record.workspace_id, record.work_date)
        with self._lock:
            if key in self._by_identity:
                return None
            self._id += 1
            self._by_identity[key] = replace(record, attendance_id=self._id, revision=0)
            return self._id

    def apply_transition(self, *, attendance_id, expected_status, expected_revision, successor) -> bool:
        with self._lock:
            self.transition_calls += 1
            for key, stored in self._by_identity.items():
                if stored.attendance_id != attendance_id:
                    continue
                if stored.status != expected_status or stored.revision != expected_revision:
                    return False
                self._by_identity[key] = replace(successor, revision=stored.revision + 1)
                return True
            return False

    def list_for_workspace_and_date(self, workspace_id: int, work_date: date):
        return [r for r in self._by_identity.values() if r.workspace_id == workspace_id and r.work_date == work_date]

    def _for_user(self, user_id, workspace_id, start_date, end_date):
        items = [
            r
            for r in self._by_identity.values()
            if r.user_id == user_id
            and r.workspace_id == workspace_id
            and (start_date is None or r.work_date >= start_date)
            and (end_date is None or r.work_date <= end_date)
        ]
        items.sort(key=lambda r: r.work_date, reverse=True)
        return items

    def list_for_user(self, *, user_id, workspace_id, start_date=None, end_date=None, offset=0, limit=30):
        return self._for_user(user_id, workspace_id, start_date, end_date)[offset : offset + limit]

    def count_for_user(self, *, user_id, workspace_id, start_date=None, end_date=None) -> int:
        return len(self._for_user(user_id, workspace_id, start_date, end_date))

    def put(self, record: AttendanceRecord) -> AttendanceRecord:
        """Seed a record directly, bypassing the state machine."""
        with self._lock:
            self._id += 1
            stored = replace(record, attendance_id=self._id)
            self._by_identity[(record.user_id, record.workspace_id, record.work_date)] = stored
            return stored


def make_record(**overrides) -> AttendanceRecord:
    values = dict(
        attendance_id=None,
        user_id=USER_ID,
        workspace_id=WORKSPACE_ID,
        work_date=date(2026, 2, 2),
        status=AttendanceStatus.CLOCKED_IN,
        clock_in=datetime(2026, 2, 2, 9, 0),
        shift_id=1,
        regular_hours=8.0,
    )
    values.update(overrides)
    return AttendanceRecord(**values)


@pytest.fixture
def fixed_now() -> datetime:
    # Monday
    return datetime(2026, 2, 2, 9, 0, 0)


@pytest.fixture
def shift() -> ShiftDefinition:
    return ShiftDefinition(
        shift_id=1,
        workspace_id=WORKSPACE_ID,
        name="Day",
        start_time=time(9, 0),
        end_time=time(17, 0),
        total_hours=8.0,
        break_minutes=60,
        grace_minutes=10,
        is_default=True,
    )


@pytest.fixture
def shifts_repo(shift) -> InMemoryShifts:
    return InMemoryShifts({shift.shift_id: shift})


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def clock(fixed_now) -> FixedClock:
    return FixedClock(fixed_now)


@pytest.fixture
def service(attendance_repo, shifts_repo, clock) -> AttendanceService:
    return AttendanceService(attendance_repo, shifts_repo, clock=clock)
