from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class WorkspaceDailySummary:
    """Read-model: who is where in a workspace on one day. Never persisted."""

    workspace_id: int
    work_date: date
    counts: dict[AttendanceStatus, int]
    headcount: int
    user_ids_by_status: dict[AttendanceStatus, list[int]] = field(default_factory=dict)
    total_work_time: timedelta = timedelta(0)

    @property
    def currently_working(self) -> int:
        return self.counts[AttendanceStatus.CLOCKED_IN] + self.counts[AttendanceStatus.LATE]

    def as_dict(self) -> dict:
        return {
            "workspaceId": self.workspace_id,
            "date": self.work_date.strftime("%Y-%m-%d"),
            "counts": {status.value: n for status, n in self.counts.items()},
            "headcount": self.headcount,
            "currentlyWorking": self.currently_working,
            "usersByStatus": {status.value: ids for status, ids in self.user_ids_by_status.items()},
            "totalWorkMinutes": int(self.total_work_time.total_seconds() // 60),
        }
