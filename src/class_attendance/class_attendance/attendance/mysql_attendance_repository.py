from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, class_id, student_user_id, session_date, status, time_in, time_out, remarks,
    student_code, first_name, middle_name, last_name, recorded_by
"""

_INSERT = """
    INSERT INTO attendance_records(
        class_id, student_user_id, session_date, status, time_in, time_out, remarks,
        student_code, first_name, middle_name, last_name, recorded_by
    )
    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
"""


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        class_id=int(r["class_id"]),
        student_user_id=int(r["student_user_id"]),
        session_date=r["session_date"],
        status=AttendanceStatus(r.get("status") or ""),
        time_in=normalize_mysql_time(r.get("time_in")),
        time_out=normalize_mysql_time(r.get("time_out")),
        remarks=r.get("remarks") or "",
        student_code=r.get("student_code") or "",
        first_name=r.get("first_name") or "",
        middle_name=r.get("middle_name") or "",
        last_name=r.get("last_name") or "",
        recorded_by=int(r["recorded_by"]) if r.get("recorded_by") is not None else None,
    )


def _params(rec: AttendanceRecord) -> tuple:
    return (
        int(rec.class_id),
        int(rec.student_user_id),
        rec.session_date,
        rec.status.value,
        rec.time_in,
        rec.time_out,
        rec.remarks or "",
        rec.student_code,
        rec.first_name,
        rec.middle_name,
        rec.last_name,
        rec.recorded_by,
    )


class MySQLAttendanceRepository(AttendanceRepository):
    """attendance_records has a UNIQUE KEY on the natural key; all writes rely on it."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, class_id: int, student_user_id: int, session_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE class_id=%s AND student_user_id=%s AND session_date=%s
                """,
                (int(class_id), int(student_user_id), session_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def put(self, record: AttendanceRecord) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _INSERT
                + """
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status), time_in=VALUES(time_in), time_out=VALUES(time_out),
                    remarks=VALUES(remarks), recorded_by=VALUES(recorded_by)
                """,
                _params(record),
            )
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE class_id=%s AND student_user_id=%s AND session_date=%s
                """,
                (int(record.class_id), int(record.student_user_id), record.session_date),
            )
            return _to_record(fetchone(cur))

    def update_if_untouched(self, record: AttendanceRecord) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, time_in=%s, time_out=%s, remarks=%s, recorded_by=%s
                WHERE class_id=%s AND student_user_id=%s AND session_date=%s
                  AND (status IS NULL OR status='') AND time_in IS NULL AND (remarks IS NULL OR remarks='')
                """,
                (
                    record.status.value,
                    record.time_in,
                    record.time_out,
                    record.remarks or "",
                    record.recorded_by,
                    int(record.class_id),
                    int(record.student_user_id),
                    record.session_date,
                ),
            )
            return cur.rowcount == 1

    def insert_missing(self, records: Sequence[AttendanceRecord]) -> int:
        if not records:
            return 0

        # One transaction; a duplicate key is a no-op update so an existing
        # (possibly hand-edited) row is never overwritten.
        inserted = 0
        with db_cursor(self._conn_factory) as (_, cur):
            for rec in records:
                cur.execute(_INSERT + " ON DUPLICATE KEY UPDATE attendance_id=attendance_id", _params(rec))
                inserted += 1 if cur.rowcount == 1 else 0
        return inserted

    def list_by_class_and_date(self, class_id: int, session_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE class_id=%s AND session_date=%s
                ORDER BY last_name ASC, first_name ASC, student_user_id ASC
                """,
                (int(class_id), session_date),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_by_class_between(self, class_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE class_id=%s AND session_date BETWEEN %s AND %s
                ORDER BY session_date DESC, last_name ASC, first_name ASC
                """,
                (int(class_id), start, end),
            )
            return [_to_record(r) for r in fetchall(cur)]
