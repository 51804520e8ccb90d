from __future__ import annotations

from datetime import date
from typing import Sequence

from ..core.enums import LogDirection
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import RawLogEntry
from .repository import LogProvider


class MySQLLogRepository(LogProvider):
    """Reads `login_logs`; each row yields an IN event and, if closed, an OUT event."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def logs_for(self, class_id: int, session_date: date) -> Sequence[RawLogEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT ll.user_id, ll.pc_number, ll.login_time, ll.logout_time
                FROM login_logs ll
                JOIN class_enrollments ce ON ce.student_user_id = ll.user_id
                WHERE ce.class_id=%s AND DATE(ll.login_time)=%s
                ORDER BY ll.login_time ASC
                """,
                (int(class_id), session_date),
            )
            out: list[RawLogEntry] = []
            for r in fetchall(cur):
                user_id = int(r["user_id"])
                pc = r.get("pc_number")
                out.append(RawLogEntry(user_id, r["login_time"], LogDirection.IN, pc))
                if r.get("logout_time"):
                    out.append(RawLogEntry(user_id, r["logout_time"], LogDirection.OUT, pc))
            return out
