from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """One student's attendance in one class session.

    (class_id, student_user_id, session_date) is the natural key; the store
    keeps at most one row per key. Name fields are copied from the enrollment
    snapshot when the row is generated so sessions render without a join.
    """

    class_id: int
    student_user_id: int
    session_date: date
    status: AttendanceStatus = AttendanceStatus.NONE
    time_in: Optional[time] = None
    time_out: Optional[time] = None
    remarks: str = ""
    student_code: str = ""
    first_name: str = ""
    middle_name: str = ""
    last_name: str = ""
    recorded_by: Optional[int] = None
    attendance_id: Optional[int] = None

    @property
    def natural_key(self) -> tuple[int, int, date]:
        return (self.class_id, self.student_user_id, self.session_date)

    @property
    def is_marked(self) -> bool:
        return self.status != AttendanceStatus.NONE

    @property
    def is_untouched(self) -> bool:
        return not self.is_marked and self.time_in is None and not self.remarks

    @property
    def display_name(self) -> str:
        initial = f" {self.middle_name[0]}." if self.middle_name else ""
        return f"{self.last_name}, {self.first_name}{initial}".strip(", ")
