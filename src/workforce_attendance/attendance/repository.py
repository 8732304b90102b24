from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    """Store interface for attendance records.

    Note: per-identity mutual exclusion is the store's job. Implementations
    must keep (user_id, workspace_id, work_date) unique and make
    ``apply_transition`` a compare-and-swap.
    """

    def get_for_user_and_date(self, user_id: int, workspace_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_if_absent(self, record: AttendanceRecord) -> Optional[int]:
        """Insert a new record; return its id, or None if one already exists for the identity."""

        raise NotImplementedError

    def apply_transition(
        self,
        *,
        attendance_id: int,
        expected_status: AttendanceStatus,
        expected_revision: int,
        successor: AttendanceRecord,
    ) -> bool:
        """Swap in ``successor`` only if the stored row is unchanged since it was read."""

        raise NotImplementedError

    def list_for_workspace_and_date(self, workspace_id: int, work_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_user(
        self,
        *,
        user_id: int,
        workspace_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        offset: int = 0,
        limit: int = 30,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def count_for_user(
        self,
        *,
        user_id: int,
        workspace_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> int:
        raise NotImplementedError
