from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable

from ..attendance.accountant import compute_work_time
from ..attendance.model import AttendanceRecord
from ..core.enums import STORED_STATUSES
from .model import WorkspaceDailySummary


def summarize_day(
    workspace_id: int,
    work_date: date,
    records: Iterable[AttendanceRecord],
    *,
    now: datetime,
) -> WorkspaceDailySummary:
    """Fold one day's records into per-status counts.

    Records from other workspaces or days are ignored, so callers may pass an
    unfiltered batch.
    """

    counts = {status: 0 for status in STORED_STATUSES}
    users = {status: [] for status in STORED_STATUSES}
    total_work = timedelta(0)
    headcount = 0

    for r in records:
        if r.workspace_id != workspace_id or r.work_date != work_date:
            continue
        headcount += 1
        counts[r.status] = counts.get(r.status, 0) + 1
        users.setdefault(r.status, []).append(r.user_id)
        total_work += compute_work_time(r, now)

    return WorkspaceDailySummary(
        workspace_id=workspace_id,
        work_date=work_date,
        counts=counts,
        headcount=headcount,
        user_ids_by_status=users,
        total_work_time=total_work,
    )
