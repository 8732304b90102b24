from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Optional

from ..common.datetime_utils import Clock, SystemClock
from ..core.constants import CONFLICT_RETRIES, DEFAULT_PAGE_SIZE
from ..core.enums import AttendanceAction, AttendanceStatus, WorkType
from ..core.exceptions import AlreadyClockedIn, ShiftNotFound, StoreConflict
from ..shifts.model import ShiftDefinition
from ..shifts.repository import ShiftRepository
from . import state_machine
from .accountant import ZERO, compute_break_time, compute_expected_clock_out, compute_work_time
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, GeoLocation, HistoryPage, TodayStatus
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

Transition = Callable[[Optional[AttendanceRecord], datetime], AttendanceRecord]


class AttendanceService:
    """Use cases: clock in/out, breaks and today's status for one user."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        shifts: ShiftRepository,
        *,
        clock: Clock | None = None,
        strategy_factory: AttendanceStrategyFactory | None = None,
    ):
        self._attendance = attendance
        self._shifts = shifts
        self._clock = clock or SystemClock()
        self._factory = strategy_factory or AttendanceStrategyFactory()

    def _resolve_shift(self, workspace_id: int, shift_id: int | None) -> ShiftDefinition:
        if not shift_id:
            shift = self._shifts.get_default_shift(workspace_id)
            if shift is None:
                raise ShiftNotFound("No default shift configured for this workspace")
            return shift

        shift = self._shifts.get_by_id(shift_id)
        # Shifts of other workspaces and deactivated shifts are treated as unknown.
        if shift is None or shift.workspace_id != workspace_id or not shift.is_active:
            raise ShiftNotFound(f"Shift {shift_id} not found")
        return shift

    def get_today_status(self, user_id: int, workspace_id: int, *, now: datetime | None = None) -> TodayStatus:
        now = now or self._clock.now()
        record = self._attendance.get_for_user_and_date(user_id, workspace_id, now.date())

        if record is None:
            return TodayStatus(
                record=None,
                shift=self._shifts.get_default_shift(workspace_id),
                actions=state_machine.available_actions(AttendanceStatus.NOT_STARTED),
                current_work_time=ZERO,
                current_break_time=ZERO,
                expected_clock_out=None,
            )

        shift = self._shifts.get_by_id(record.shift_id) if record.shift_id else None
        return TodayStatus(
            record=record,
            shift=shift,
            actions=state_machine.available_actions(record.status),
            current_work_time=compute_work_time(record, now),
            current_break_time=record.total_break_time if record.is_closed else compute_break_time(record, now),
            expected_clock_out=compute_expected_clock_out(record, shift),
        )

    def clock_in(
        self,
        user_id: int,
        workspace_id: int,
        *,
        now: datetime | None = None,
        shift_id: int | None = None,
        work_type: WorkType = WorkType.OFFICE,
        note: str | None = None,
        location: GeoLocation | None = None,
        ip: str | None = None,
        device: str | None = None,
    ) -> AttendanceRecord:
        now = now or self._clock.now()
        existing = self._attendance.get_for_user_and_date(user_id, workspace_id, now.date())
        if existing is not None:
            raise AlreadyClockedIn("Already clocked in today")

        shift = self._resolve_shift(workspace_id, shift_id)
        strategy = self._factory.for_clock_in(now=now, shift=shift)
        decision = strategy.decide_clock_in(now=now, shift=shift)

        record = state_machine.clock_in(
            existing,
            user_id=user_id,
            workspace_id=workspace_id,
            now=now,
            shift=shift,
            decision=decision,
            work_type=work_type,
            note=note,
            location=location,
            ip=ip,
            device=device,
        )

        attendance_id = self._attendance.create_if_absent(record)
        if attendance_id is None:
            # Lost the race to a concurrent clock-in for the same identity.
            logger.warning("Duplicate clock-in rejected | user=%s workspace=%s", user_id, workspace_id)
            raise AlreadyClockedIn("Already clocked in today")

        created = self._attendance.get_for_user_and_date(user_id, workspace_id, now.date())
        logger.info(
            "User clocked in | user=%s workspace=%s attendance=%s status=%s shift=%s",
            user_id,
            workspace_id,
            attendance_id,
            record.status.value,
            shift.shift_id,
        )
        return created or record

    def start_break(self, user_id: int, workspace_id: int, *, now: datetime | None = None) -> AttendanceRecord:
        return self._transition(
            AttendanceAction.START_BREAK,
            user_id,
            workspace_id,
            now or self._clock.now(),
            lambda record, at: state_machine.start_break(record, now=at),
        )

    def end_break(self, user_id: int, workspace_id: int, *, now: datetime | None = None) -> AttendanceRecord:
        return self._transition(
            AttendanceAction.END_BREAK,
            user_id,
            workspace_id,
            now or self._clock.now(),
            lambda record, at: state_machine.end_break(record, now=at),
        )

    def clock_out(
        self,
        user_id: int,
        workspace_id: int,
        *,
        now: datetime | None = None,
        note: str | None = None,
        location: GeoLocation | None = None,
    ) -> AttendanceRecord:
        def apply(record: Optional[AttendanceRecord], at: datetime) -> AttendanceRecord:
            shift = self._shifts.get_by_id(record.shift_id) if record and record.shift_id else None
            return state_machine.clock_out(record, now=at, shift=shift, note=note, location=location)

        return self._transition(AttendanceAction.CLOCK_OUT, user_id, workspace_id, now or self._clock.now(), apply)

    def _transition(
        self,
        action: AttendanceAction,
        user_id: int,
        workspace_id: int,
        now: datetime,
        apply: Transition,
    ) -> AttendanceRecord:
        """Read, decide, compare-and-swap; one fresh retry if the swap loses a race."""

        for attempt in range(CONFLICT_RETRIES + 1):
            current = self._attendance.get_for_user_and_date(user_id, workspace_id, now.date())
            successor = apply(current, now)

            swapped = self._attendance.apply_transition(
                attendance_id=int(current.attendance_id),
                expected_status=current.status,
                expected_revision=current.revision,
                successor=successor,
            )
            if swapped:
                logger.info(
                    "Attendance %s | user=%s workspace=%s attendance=%s status=%s->%s",
                    action.value,
                    user_id,
                    workspace_id,
                    current.attendance_id,
                    current.status.value,
                    successor.status.value,
                )
                return replace(successor, revision=current.revision + 1)

            logger.warning(
                "Attendance %s lost a concurrent update | user=%s workspace=%s attempt=%s",
                action.value,
                user_id,
                workspace_id,
                attempt + 1,
            )

        raise StoreConflict("Attendance was changed by another request, please retry")

    def get_history(
        self,
        user_id: int,
        workspace_id: int,
        *,
        start: date | None = None,
        end: date | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> HistoryPage:
        offset = (page - 1) * limit
        records = self._attendance.list_for_user(
            user_id=user_id,
            workspace_id=workspace_id,
            start_date=start,
            end_date=end,
            offset=offset,
            limit=limit,
        )
        total = self._attendance.count_for_user(
            user_id=user_id,
            workspace_id=workspace_id,
            start_date=start,
            end_date=end,
        )
        return HistoryPage(records=list(records), page=page, limit=limit, total=total)

