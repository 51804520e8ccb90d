from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    """Persistence contract for attendance rows, keyed by the natural key.

    Implementations must enforce uniqueness of (class_id, student_user_id,
    session_date) themselves so concurrent writers converge on one row.
    Unreachable backends raise StoreUnavailable.
    """

    def get(self, class_id: int, student_user_id: int, session_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def put(self, record: AttendanceRecord) -> AttendanceRecord:
        """Insert or overwrite the row at the record's natural key; returns the stored row."""

        raise NotImplementedError

    def update_if_untouched(self, record: AttendanceRecord) -> bool:
        """Write status, times and remarks only if the stored row is still untouched.

        Untouched means status none, no time-in and empty remarks at the moment
        of the write. Returns False when the row was edited in the meantime.
        """

        raise NotImplementedError

    def insert_missing(self, records: Sequence[AttendanceRecord]) -> int:
        """Atomically insert the rows whose natural key is not stored yet.

        Existing rows are left untouched. Returns the number of rows inserted.
        """

        raise NotImplementedError

    def list_by_class_and_date(self, class_id: int, session_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_by_class_between(self, class_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
