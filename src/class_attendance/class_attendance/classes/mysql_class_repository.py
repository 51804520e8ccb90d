from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ClassSchedule
from .repository import ClassRepository

_COLUMNS = "class_id, subject_code, subject_name, schedule, room, is_active, enrolled_count"


def _to_class(r: dict) -> ClassSchedule:
    return ClassSchedule(
        class_id=int(r["class_id"]),
        subject_code=r["subject_code"],
        subject_name=r["subject_name"],
        schedule=r.get("schedule") or "",
        room=r.get("room") or "",
        is_active=bool(r.get("is_active")),
        enrolled_count=int(r.get("enrolled_count") or 0),
    )


class MySQLClassRepository(ClassRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, class_id: int) -> Optional[ClassSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM classes WHERE class_id=%s", (int(class_id),))
            r = fetchone(cur)
            return _to_class(r) if r else None

    def list_active(self) -> Sequence[ClassSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM classes WHERE is_active=1 ORDER BY subject_code, class_id")
            return [_to_class(r) for r in fetchall(cur)]
