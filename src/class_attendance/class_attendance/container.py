from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.scanner import ActiveSessionScanner
from .attendance.service import AttendanceSessionService
from .classes.mysql_class_repository import MySQLClassRepository
from .classes.repository import ClassRepository
from .core.constants import DEFAULT_LATE_GRACE_MINUTES, DEFAULT_LOOKBACK_DAYS, DEFAULT_SCAN_MAX_WORKERS
from .database.connection import DBConfig, DatabaseConnection
from .enrollment.mysql_enrollment_repository import MySQLEnrollmentRepository
from .enrollment.repository import EnrollmentProvider
from .logs.mysql_log_repository import MySQLLogRepository
from .logs.repository import LogProvider


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    classes_repo: ClassRepository
    enrollment_repo: EnrollmentProvider
    logs_repo: Optional[LogProvider]
    attendance_repo: AttendanceRepository

    session_service: AttendanceSessionService
    scanner: ActiveSessionScanner

    default_lookback_days: int = DEFAULT_LOOKBACK_DAYS


def build_container(*, db_config: dict, settings: Any = None) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    classes_repo = MySQLClassRepository(conn)
    enrollment_repo = MySQLEnrollmentRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    # Login logs are optional; without them sessions start unmarked.
    logs_repo = MySQLLogRepository(conn) if getattr(settings, "USE_LOGIN_LOGS", True) else None

    session_service = AttendanceSessionService(
        attendance_repo,
        enrollment_repo,
        classes_repo,
        logs_repo,
        strategy_factory=AttendanceStrategyFactory(),
        grace_minutes=int(getattr(settings, "LATE_GRACE_MINUTES", DEFAULT_LATE_GRACE_MINUTES)),
    )
    scanner = ActiveSessionScanner(
        attendance_repo,
        max_workers=int(getattr(settings, "SCAN_MAX_WORKERS", DEFAULT_SCAN_MAX_WORKERS)),
    )

    return Container(
        conn=conn,
        classes_repo=classes_repo,
        enrollment_repo=enrollment_repo,
        logs_repo=logs_repo,
        attendance_repo=attendance_repo,
        session_service=session_service,
        scanner=scanner,
        default_lookback_days=int(getattr(settings, "DEFAULT_LOOKBACK_DAYS", DEFAULT_LOOKBACK_DAYS)),
    )
