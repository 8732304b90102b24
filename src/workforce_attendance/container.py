from __future__ import annotations

from dataclasses import dataclass

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import Clock, SystemClock
from .database.connection import DBConfig, DatabaseConnection
from .reports.service import SummaryService
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .shifts.repository import ShiftRepository


@dataclass(frozen=True)
class Container:
    clock: Clock

    shifts_repo: ShiftRepository
    attendance_repo: AttendanceRepository

    attendance_service: AttendanceService
    summary_service: SummaryService


def wire(*, attendance_repo: AttendanceRepository, shifts_repo: ShiftRepository, clock: Clock | None = None) -> Container:
    clock = clock or SystemClock()
    attendance_service = AttendanceService(
        attendance_repo,
        shifts_repo,
        clock=clock,
        strategy_factory=AttendanceStrategyFactory(),
    )
    summary_service = SummaryService(attendance_repo, clock=clock)

    return Container(
        clock=clock,
        shifts_repo=shifts_repo,
        attendance_repo=attendance_repo,
        attendance_service=attendance_service,
        summary_service=summary_service,
    )


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return wire(
        attendance_repo=MySQLAttendanceRepository(conn),
        shifts_repo=MySQLShiftRepository(conn),
    )
