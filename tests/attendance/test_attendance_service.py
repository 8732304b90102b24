from __future__ import annotations

from datetime import date, datetime, time, timedelta

import pytest
from conftest import USER_ID, WORKSPACE_ID, InMemoryAttendance, InMemoryShifts, make_record

from workforce_attendance.attendance.model import GeoLocation
from workforce_attendance.attendance.service import AttendanceService
from workforce_attendance.common.datetime_utils import FixedClock
from workforce_attendance.core.enums import AttendanceStatus, WorkType
from workforce_attendance.core.exceptions import (
    AlreadyClockedIn,
    InvalidTransition,
    NoActiveAttendance,
    ShiftNotFound,
    StoreConflict,
    ValidationError,
)
from workforce_attendance.shifts.model import ShiftDefinition


def test_clock_in_on_time_and_late_around_grace(attendance_repo, shifts_repo):
    svc = AttendanceService(attendance_repo, shifts_repo)

    on_time = svc.clock_in(1, WORKSPACE_ID, now=datetime(2026, 2, 2, 9, 10, 0))
    late = svc.clock_in(2, WORKSPACE_ID, now=datetime(2026, 2, 2, 9, 10, 1))

    assert on_time.status == AttendanceStatus.CLOCKED_IN
    assert late.status == AttendanceStatus.LATE
    assert late.note.startswith("Late by 10 min")


def test_second_clock_in_same_day_fails(service, fixed_now):
    service.clock_in(USER_ID, WORKSPACE_ID, now=fixed_now)

    with pytest.raises(AlreadyClockedIn):
        service.clock_in(USER_ID, WORKSPACE_ID, now=fixed_now + timedelta(hours=1))


def test_clock_in_next_day_creates_new_record(service, fixed_now):
    service.clock_in(USER_ID, WORKSPACE_ID, now=fixed_now)
    tomorrow = service.clock_in(USER_ID, WORKSPACE_ID, now=fixed_now + timedelta(days=1))

    assert tomorrow.work_date == date(2026, 2, 3)


def test_clock_in_without_default_shift_raises_shift_not_found(attendance_repo, fixed_now):
    svc = AttendanceService(attendance_repo, InMemoryShifts({}))

    with pytest.raises(ShiftNotFound):
        svc.clock_in(USER_ID, WORKSPACE_ID, now=fixed_now)
    with pytest.raises(ShiftNotFound):
        svc.clock_in(USER_ID, WORKSPACE_ID, now=fixed_now, shift_id=99)


def test_clock_in_with_explicit_shift_pins_it(attendance_repo, shift, fixed_now):
    night = ShiftDefinition(
        shift_id=2,
        workspace_id=WORKSPACE_ID,
        name="Early",
        start_time=time(7, 0),
        end_time=time(15, 0),
        total_hours=7.5,
        grace_minutes=5,
    )
    svc = AttendanceService(attendance_repo, InMemoryShifts({1: shift, 2: night}))

    record = svc.clock_in(USER_ID, WORKSPACE_ID, now=fixed_now, shift_id=2, work_type=WorkType.REMOTE)

    assert record.shift_id == 2
    assert record.regular_hours == 7.5
    assert record.status == AttendanceStatus.LATE
    assert record.work_type == WorkType.REMOTE


def test_break_and_clock_out_without_record_raise(service, fixed_now):
    with pytest.raises(NoActiveAttendance):
        service.start_break(USER_ID, WORKSPACE_ID, now=fixed_now)
    with pytest.raises(NoActiveAttendance):
        service.end_break(USER_ID, WORKSPACE_ID, now=fixed_now)
    with pytest.raises(NoActiveAttendance):
        service.clock_out(USER_ID, WORKSPACE_ID, now=fixed_now)


def test_end_break_when_not_on_break_is_invalid(service, fixed_now):
    service.clock_in(USER_ID, WORKSPACE_ID, now=fixed_now)

    with pytest.raises(InvalidTransition):
        service.end_break(USER_ID, WORKSPACE_ID, now=fixed_now + timedelta(hours=1))


def test_full_day_totals(service, attendance_repo):
    day = date(2026, 2, 2)
    service.clock_in(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 9, 0))
    service.start_break(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 12, 0))
    service.end_break(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 12, 30))
    closed = service.clock_out(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 17, 0))

    stored = attendance_repo.get_for_user_and_date(USER_ID, WORKSPACE_ID, day)
    assert stored.status == AttendanceStatus.CLOCKED_OUT
    assert stored.total_break_time == timedelta(minutes=30)
    assert stored.total_work_time == timedelta(hours=7, minutes=30)
    assert closed.revision == stored.revision == 3


def test_late_user_returns_to_late_after_break(service):
    service.clock_in(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 9, 45))
    service.start_break(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 12, 0))
    back = service.end_break(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 12, 15))

    assert back.status == AttendanceStatus.LATE


def test_clock_out_while_on_break_is_rejected(service):
    service.clock_in(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 9, 0))
    service.start_break(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 12, 0))

    with pytest.raises(InvalidTransition):
        service.clock_out(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 17, 0))


def test_actions_after_clock_out_are_rejected(service):
    service.clock_in(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 9, 0))
    service.clock_out(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 17, 0))

    with pytest.raises(InvalidTransition):
        service.start_break(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 17, 5))
    with pytest.raises(AlreadyClockedIn):
        service.clock_in(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 17, 5))


def test_clock_out_records_capped_overtime(service):
    service.clock_in(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 7, 0))
    closed = service.clock_out(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 21, 30), note="release night")

    # 14h30m worked on an 8h shift; default policy caps overtime at 4h.
    assert closed.total_work_time == timedelta(hours=14, minutes=30)
    assert closed.overtime_minutes == 4 * 60
    assert closed.note == "Clock out: release night"


def test_today_status_before_clock_in_surfaces_default_shift(service, shift, fixed_now):
    status = service.get_today_status(USER_ID, WORKSPACE_ID, now=fixed_now)

    assert status.record is None
    assert status.status == AttendanceStatus.NOT_STARTED
    assert status.shift == shift
    assert status.actions.can_clock_in and not status.actions.can_clock_out
    assert status.current_work_time == timedelta(0)
    assert status.expected_clock_out is None


def test_today_status_while_open_recomputes_against_now(service, clock):
    service.clock_in(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 9, 20))
    clock.at = datetime(2026, 2, 2, 11, 20)

    status = service.get_today_status(USER_ID, WORKSPACE_ID)

    assert status.status == AttendanceStatus.LATE
    assert status.current_work_time == timedelta(hours=2)
    assert status.expected_clock_out == datetime(2026, 2, 2, 17, 20)
    assert status.actions.can_start_break


def test_today_status_after_clock_out_is_stable(service):
    service.clock_in(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 9, 0))
    service.clock_out(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 17, 0))

    first = service.get_today_status(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 18, 0))
    second = service.get_today_status(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 23, 0))

    assert first.current_work_time == second.current_work_time == timedelta(hours=8)
    assert first.expected_clock_out is None
    assert not any(first.actions.as_dict().values())


def test_history_is_paged_newest_first(attendance_repo, shifts_repo):
    for day in range(2, 9):
        attendance_repo.put(make_record(work_date=date(2026, 2, day), clock_in=datetime(2026, 2, day, 9, 0)))
    svc = AttendanceService(attendance_repo, shifts_repo)

    page = svc.get_history(USER_ID, WORKSPACE_ID, page=2, limit=3)

    assert page.total == 7
    assert page.pages == 3
    assert [r.work_date.day for r in page.records] == [5, 4, 3]


def test_history_filters_by_date_range(attendance_repo, shifts_repo):
    for day in range(2, 9):
        attendance_repo.put(make_record(work_date=date(2026, 2, day), clock_in=datetime(2026, 2, day, 9, 0)))
    svc = AttendanceService(attendance_repo, shifts_repo)

    page = svc.get_history(USER_ID, WORKSPACE_ID, start=date(2026, 2, 3), end=date(2026, 2, 4))

    assert page.total == 2


class FlakyAttendance(InMemoryAttendance):
    """Loses the compare-and-swap a fixed number of times."""

    def __init__(self, failures: int):
        super().__init__()
        self.failures = failures

    def apply_transition(self, **kwargs) -> bool:
        if self.failures > 0:
            self.failures -= 1
            self.transition_calls += 1
            return False
        return super().apply_transition(**kwargs)


def test_lost_swap_is_retried_once(shifts_repo):
    repo = FlakyAttendance(failures=1)
    svc = AttendanceService(repo, shifts_repo, clock=FixedClock(datetime(2026, 2, 2, 9, 0)))
    svc.clock_in(USER_ID, WORKSPACE_ID)

    record = svc.start_break(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 12, 0))

    assert record.status == AttendanceStatus.ON_BREAK
    assert repo.transition_calls == 2


def test_repeated_lost_swap_surfaces_store_conflict(shifts_repo):
    repo = FlakyAttendance(failures=5)
    svc = AttendanceService(repo, shifts_repo)
    svc.clock_in(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 9, 0))

    with pytest.raises(StoreConflict):
        svc.clock_out(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 17, 0))

    assert repo.transition_calls == 2
    stored = repo.get_for_user_and_date(USER_ID, WORKSPACE_ID, date(2026, 2, 2))
    assert stored.status == AttendanceStatus.CLOCKED_IN


def _foreign_shift(**overrides) -> ShiftDefinition:
    values = dict(
        shift_id=50,
        workspace_id=WORKSPACE_ID,
        name="Relaxed",
        start_time=time(12, 0),
        end_time=time(20, 0),
        total_hours=8,
        grace_minutes=120,
    )
    values.update(overrides)
    return ShiftDefinition(**values)


@pytest.mark.parametrize(
    "other",
    [
        _foreign_shift(workspace_id=999),
        _foreign_shift(is_active=False),
    ],
    ids=["other-workspace", "inactive"],
)
def test_clock_in_rejects_shift_not_in_force_for_workspace(attendance_repo, shift, other):
    svc = AttendanceService(attendance_repo, InMemoryShifts({1: shift, 50: other}))

    with pytest.raises(ShiftNotFound):
        svc.clock_in(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 11, 0), shift_id=50)

    assert attendance_repo.get_for_user_and_date(USER_ID, WORKSPACE_ID, date(2026, 2, 2)) is None


def test_today_status_counts_open_break_against_now(service):
    service.clock_in(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 9, 0))
    service.start_break(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 12, 0))

    status = service.get_today_status(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 12, 20))

    assert status.record.total_break_time == timedelta(0)
    assert status.current_break_time == timedelta(minutes=20)
    assert status.current_work_time == timedelta(hours=3)


def test_clock_in_and_out_keep_location_and_origin(service):
    office = GeoLocation(latitude=51.5072, longitude=-0.1276, address="1 Main St")
    site = GeoLocation(latitude=51.5, longitude=-0.12)

    opened = service.clock_in(
        USER_ID,
        WORKSPACE_ID,
        now=datetime(2026, 2, 2, 9, 0),
        location=office,
        ip="203.0.113.7",
        device="Mozilla/5.0",
    )
    closed = service.clock_out(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 17, 0), location=site)

    assert opened.clock_in_location == office
    assert (opened.ip, opened.device) == ("203.0.113.7", "Mozilla/5.0")
    assert closed.clock_in_location == office
    assert closed.clock_out_location == site


def test_clock_in_on_non_working_day_is_flagged_weekend(service):
    saturday = service.clock_in(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 7, 9, 0))
    monday = service.clock_in(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 9, 9, 0))

    assert saturday.is_weekend is True
    assert monday.is_weekend is False


def test_notes_are_trimmed_and_bounded(service):
    record = service.clock_in(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 9, 0), note="  client visit  ")
    assert record.note == "client visit"

    with pytest.raises(ValidationError):
        service.clock_in(2, WORKSPACE_ID, now=datetime(2026, 2, 2, 9, 0), note="x" * 501)
    with pytest.raises(ValidationError):
        service.clock_in(3, WORKSPACE_ID, now=datetime(2026, 2, 2, 9, 0), note=["not", "text"])


def test_clock_out_rejects_note_that_overflows_the_day(service, attendance_repo):
    service.clock_in(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 9, 30), note="a" * 500)

    with pytest.raises(ValidationError):
        service.clock_out(USER_ID, WORKSPACE_ID, now=datetime(2026, 2, 2, 17, 0), note="b" * 500)

    stored = attendance_repo.get_for_user_and_date(USER_ID, WORKSPACE_ID, date(2026, 2, 2))
    assert stored.status == AttendanceStatus.LATE
