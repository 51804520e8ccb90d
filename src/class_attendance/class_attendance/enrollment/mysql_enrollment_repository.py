from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import EnrolledStudent
from .repository import EnrollmentProvider


class MySQLEnrollmentRepository(EnrollmentProvider):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_enrolled(self, class_id: int) -> Sequence[EnrolledStudent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT u.user_id, u.student_code, u.first_name, u.middle_name, u.last_name
                FROM class_enrollments ce
                JOIN users u ON u.user_id = ce.student_user_id
                WHERE ce.class_id=%s
                ORDER BY u.last_name, u.first_name, u.user_id
                """,
                (int(class_id),),
            )
            return [
                EnrolledStudent(
                    student_user_id=int(r["user_id"]),
                    student_code=r.get("student_code") or "",
                    first_name=r.get("first_name") or "",
                    middle_name=r.get("middle_name") or "",
                    last_name=r.get("last_name") or "",
                )
                for r in fetchall(cur)
            ]
