from __future__ import annotations

import json
from typing import Any, Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, normalize_mysql_time
from .model import OvertimePolicy, ShiftDefinition
from .repository import ShiftRepository

_COLUMNS = """
    shift_id, workspace_id, shift_name, start_time, end_time, total_hours,
    break_minutes, grace_minutes, allow_overtime, max_overtime_hours,
    overtime_multiplier, is_default, is_active, working_days
"""


def _to_shift(r: dict[str, Any]) -> ShiftDefinition:
    working_days = r.get("working_days")
    max_ot = r.get("max_overtime_hours")
    return ShiftDefinition(
        shift_id=int(r["shift_id"]),
        workspace_id=int(r["workspace_id"]),
        name=r["shift_name"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        total_hours=float(r["total_hours"]),
        break_minutes=int(r.get("break_minutes") or 0),
        grace_minutes=int(r.get("grace_minutes") or 0),
        overtime=OvertimePolicy(
            allow_overtime=bool(r.get("allow_overtime", 1)),
            max_overtime_hours=float(max_ot) if max_ot is not None else None,
            multiplier=float(r.get("overtime_multiplier") or 1.5),
        ),
        is_default=bool(r.get("is_default")),
        is_active=bool(r.get("is_active", 1)),
        working_days=tuple(json.loads(working_days)) if working_days else (0, 1, 2, 3, 4),
    )


class MySQLShiftRepository(ShiftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, shift_id: int) -> Optional[ShiftDefinition]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM shifts WHERE shift_id=%s", (int(shift_id),))
            r = fetchone(cur)
            return _to_shift(r) if r else None

    def get_default_shift(self, workspace_id: int) -> Optional[ShiftDefinition]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM shifts
                WHERE workspace_id=%s AND is_default=1 AND is_active=1
                ORDER BY shift_id
                LIMIT 1
                """,
                (int(workspace_id),),
            )
            r = fetchone(cur)
            return _to_shift(r) if r else None
