from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus, WorkType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceRecord, BreakInterval, GeoLocation
from .repository import AttendanceRepository

_RECORD_COLUMNS = """
    attendance_id, user_id, workspace_id, work_date, status, resume_status,
    clock_in, clock_out, total_break_seconds, total_work_seconds,
    overtime_minutes, shift_id, regular_hours, work_type, note, is_weekend,
    clock_in_latitude, clock_in_longitude, clock_in_address,
    clock_out_latitude, clock_out_longitude, clock_out_address,
    ip, device, revision
"""


def _seconds(value: Optional[timedelta]) -> Optional[int]:
    return int(value.total_seconds()) if value is not None else None


def _location_from(r: dict[str, Any], prefix: str) -> Optional[GeoLocation]:
    lat, lng = r.get(f"{prefix}_latitude"), r.get(f"{prefix}_longitude")
    if lat is None or lng is None:
        return None
    return GeoLocation(latitude=float(lat), longitude=float(lng), address=r.get(f"{prefix}_address"))


def _location_params(location: Optional[GeoLocation]) -> tuple:
    if location is None:
        return (None, None, None)
    return (location.latitude, location.longitude, location.address)


def _to_record(r: dict[str, Any], breaks: Sequence[BreakInterval]) -> AttendanceRecord:
    work_seconds = r.get("total_work_seconds")
    resume = r.get("resume_status")
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        workspace_id=int(r["workspace_id"]),
        work_date=r["work_date"],
        status=AttendanceStatus(r["status"]),
        clock_in=r["clock_in"],
        clock_out=r.get("clock_out"),
        breaks=tuple(breaks),
        resume_status=AttendanceStatus(resume) if resume else None,
        total_break_time=timedelta(seconds=int(r.get("total_break_seconds") or 0)),
        total_work_time=timedelta(seconds=int(work_seconds)) if work_seconds is not None else None,
        overtime_minutes=int(r.get("overtime_minutes") or 0),
        shift_id=int(r["shift_id"]) if r.get("shift_id") is not None else None,
        regular_hours=float(r.get("regular_hours") or 0),
        work_type=WorkType(r.get("work_type") or WorkType.OFFICE.value),
        note=r.get("note"),
        is_weekend=bool(r.get("is_weekend")),
        clock_in_location=_location_from(r, "clock_in"),
        clock_out_location=_location_from(r, "clock_out"),
        ip=r.get("ip"),
        device=r.get("device"),
        revision=int(r.get("revision") or 0),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load_breaks(self, cur, attendance_ids: Sequence[int]) -> dict[int, list[BreakInterval]]:
        out: dict[int, list[BreakInterval]] = {i: [] for i in attendance_ids}
        if not attendance_ids:
            return out

        placeholders = ",".join(["%s"] * len(attendance_ids))
        cur.execute(
            f"""
            SELECT attendance_id, seq, started_at, ended_at
            FROM attendance_breaks
            WHERE attendance_id IN ({placeholders})
            ORDER BY attendance_id, seq
            """,
            tuple(attendance_ids),
        )
        for b in fetchall(cur):
            out[int(b["attendance_id"])].append(BreakInterval(start=b["started_at"], end=b.get("ended_at")))
        return out

    def _hydrate(self, cur, rows: list[dict]) -> list[AttendanceRecord]:
        breaks = self._load_breaks(cur, [int(r["attendance_id"]) for r in rows])
        return [_to_record(r, breaks[int(r["attendance_id"])]) for r in rows]

    def get_for_user_and_date(self, user_id: int, workspace_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance_records
                WHERE user_id=%s AND workspace_id=%s AND work_date=%s
                """,
                (int(user_id), int(workspace_id), work_date),
            )
            r = fetchone(cur)
            if not r:
                return None
            return self._hydrate(cur, [r])[0]

    def create_if_absent(self, record: AttendanceRecord) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        user_id, workspace_id, work_date, status, clock_in, shift_id,
                        regular_hours, work_type, note, is_weekend,
                        clock_in_latitude, clock_in_longitude, clock_in_address,
                        ip, device, revision
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,0)
                    """,
                    (
                        int(record.user_id),
                        int(record.workspace_id),
                        record.work_date,
                        record.status.value,
                        record.clock_in,
                        record.shift_id,
                        record.regular_hours,
                        record.work_type.value,
                        record.note,
                        int(record.is_weekend),
                        *_location_params(record.clock_in_location),
                        record.ip,
                        record.device,
                    ),
                )
            except mysql.connector.IntegrityError as e:
                if is_duplicate_key(e):
                    return None
                raise
            return int(cur.lastrowid)

    def apply_transition(
        self,
        *,
        attendance_id: int,
        expected_status: AttendanceStatus,
        expected_revision: int,
        successor: AttendanceRecord,
    ) -> bool:
        with db_cursor(self._conn_factory) as (conn, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, resume_status=%s, clock_out=%s, total_break_seconds=%s,
                    total_work_seconds=%s, overtime_minutes=%s, note=%s,
                    clock_out_latitude=%s, clock_out_longitude=%s, clock_out_address=%s,
                    revision=revision+1
                WHERE attendance_id=%s AND status=%s AND revision=%s
                """,
                (
                    successor.status.value,
                    successor.resume_status.value if successor.resume_status else None,
                    successor.clock_out,
                    _seconds(successor.total_break_time) or 0,
                    _seconds(successor.total_work_time),
                    int(successor.overtime_minutes),
                    successor.note,
                    *_location_params(successor.clock_out_location),
                    int(attendance_id),
                    expected_status.value,
                    int(expected_revision),
                ),
            )
            if cur.rowcount == 0:
                conn.rollback()
                return False

            # Breaks are append-only; re-writing them by position is idempotent.
            for seq, b in enumerate(successor.breaks):
                cur.execute(
                    """
                    INSERT INTO attendance_breaks(attendance_id, seq, started_at, ended_at)
                    VALUES(%s,%s,%s,%s)
                    ON DUPLICATE KEY UPDATE ended_at=VALUES(ended_at)
                    """,
                    (int(attendance_id), seq, b.start, b.end),
                )
            return True

    def list_for_workspace_and_date(self, workspace_id: int, work_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance_records
                WHERE workspace_id=%s AND work_date=%s
                ORDER BY clock_in ASC
                """,
                (int(workspace_id), work_date),
            )
            return self._hydrate(cur, fetchall(cur))

    @staticmethod
    def _user_filter(user_id: int, workspace_id: int, start_date: Optional[date], end_date: Optional[date]):
        clauses = ["user_id=%s", "workspace_id=%s"]
        params: list[object] = [int(user_id), int(workspace_id)]
        if start_date is not None:
            clauses.append("work_date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("work_date <= %s")
            params.append(end_date)
        return " AND ".join(clauses), params

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
        where, params = self._user_filter(user_id, workspace_id, start_date, end_date)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance_records
                WHERE {where}
                ORDER BY work_date DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            return self._hydrate(cur, fetchall(cur))

    def count_for_user(
        self,
        *,
        user_id: int,
        workspace_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> int:
        where, params = self._user_filter(user_id, workspace_id, start_date, end_date)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM attendance_records WHERE {where}", tuple(params))
            r = fetchone(cur)
            return int(r["total"]) if r else 0
