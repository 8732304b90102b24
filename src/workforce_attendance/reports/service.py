from __future__ import annotations

from datetime import date, datetime

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import Clock, SystemClock
from .aggregator import summarize_day
from .model import WorkspaceDailySummary


class SummaryService:
    def __init__(self, attendance: AttendanceRepository, *, clock: Clock | None = None):
        self._attendance = attendance
        self._clock = clock or SystemClock()

    def get_workspace_summary(
        self,
        workspace_id: int,
        work_date: date,
        *,
        now: datetime | None = None,
    ) -> WorkspaceDailySummary:
        records = self._attendance.list_for_workspace_and_date(workspace_id, work_date)
        return summarize_day(workspace_id, work_date, records, now=now or self._clock.now())
