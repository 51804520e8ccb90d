from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date
from typing import Optional, Sequence

import pytest

from class_attendance.attendance.model import AttendanceRecord
from class_attendance.attendance.service import AttendanceSessionService
from class_attendance.classes.model import ClassSchedule
from class_attendance.core.enums import Role
from class_attendance.core.exceptions import StoreUnavailable
from class_attendance.enrollment.model import EnrolledStudent
from class_attendance.logs.model import RawLogEntry
from class_attendance.users.model import CurrentUser


class InMemoryAttendance:
    """Natural-key store; a lock makes insert_missing atomic like the MySQL batch."""

    def __init__(self):
        self._rows: dict[tuple[int, int, date], AttendanceRecord] = {}
        self._lock = threading.Lock()
        self._id = 0
        self.failing_dates: set[date] = set()
        self.fail_writes = False
        self.list_calls: list[tuple[int, date]] = []

    def _check(self, session_date: date) -> None:
        if session_date in self.failing_dates:
            raise StoreUnavailable(f"store down for {session_date}")

    def get(self, class_id: int, student_user_id: int, session_date: date) -> Optional[AttendanceRecord]:
        self._check(session_date)
        return self._rows.get((class_id, student_user_id, session_date))

    def put(self, record: AttendanceRecord) -> AttendanceRecord:
        self._check(record.session_date)
        if self.fail_writes:
            raise StoreUnavailable("write failed")
        with self._lock:
            existing = self._rows.get(record.natural_key)
            if existing:
                stored = replace(record, attendance_id=existing.attendance_id)
            else:
                self._id += 1
                stored = replace(record, attendance_id=self._id)
            self._rows[record.natural_key] = stored
            return stored

    def update_if_untouched(self, record: AttendanceRecord) -> bool:
        self._check(record.session_date)
        if self.fail_writes:
            raise StoreUnavailable("write failed")
        with self._lock:
            existing = self._rows.get(record.natural_key)
            if existing is None or not existing.is_untouched:
                return False
            self._rows[record.natural_key] = replace(record, attendance_id=existing.attendance_id)
            return True

    def insert_missing(self, records: Sequence[AttendanceRecord]) -> int:
        if self.fail_writes:
            raise StoreUnavailable("write failed")
        inserted = 0
        with self._lock:
            for rec in records:
                if rec.natural_key in self._rows:
                    continue
                self._id += 1
                self._rows[rec.natural_key] = replace(rec, attendance_id=self._id)
                inserted += 1
        return inserted

    def list_by_class_and_date(self, class_id: int, session_date: date) -> Sequence[AttendanceRecord]:
        self.list_calls.append((class_id, session_date))
        self._check(session_date)
        with self._lock:
            return [r for (c, _, d), r in self._rows.items() if c == class_id and d == session_date]

    def list_by_class_between(self, class_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        with self._lock:
            return [r for (c, _, d), r in self._rows.items() if c == class_id and start <= d <= end]

    def all_rows(self) -> list[AttendanceRecord]:
        return list(self._rows.values())


class InMemoryEnrollment:
    def __init__(self, by_class: dict[int, list[EnrolledStudent]]):
        self.by_class = by_class
        self.unavailable = False
        self.barrier: Optional[threading.Barrier] = None

    def list_enrolled(self, class_id: int) -> Sequence[EnrolledStudent]:
        if self.unavailable:
            raise StoreUnavailable("enrollment service down")
        if self.barrier is not None:
            self.barrier.wait(timeout=5)
        return list(self.by_class.get(class_id, []))


class InMemoryLogs:
    def __init__(self, entries: list[RawLogEntry] | None = None):
        self.entries = entries or []
        self.unavailable = False

    def logs_for(self, class_id: int, session_date: date) -> Sequence[RawLogEntry]:
        if self.unavailable:
            raise StoreUnavailable("log source down")
        return [e for e in self.entries if e.timestamp.date() == session_date]


class InMemoryClasses:
    def __init__(self, classes: list[ClassSchedule]):
        self.classes = {c.class_id: c for c in classes}

    def get_by_id(self, class_id: int) -> Optional[ClassSchedule]:
        return self.classes.get(class_id)

    def list_active(self) -> Sequence[ClassSchedule]:
        return [c for c in self.classes.values() if c.is_active]


def make_student(user_id: int, last: str, first: str = "Ana", code: str | None = None) -> EnrolledStudent:
    return EnrolledStudent(
        student_user_id=user_id,
        student_code=code or f"2024-{user_id:04d}",
        first_name=first,
        middle_name="",
        last_name=last,
    )


@pytest.fixture
def teacher() -> CurrentUser:
    return CurrentUser(user_id=100, role=Role.TEACHER)


@pytest.fixture
def student_user() -> CurrentUser:
    return CurrentUser(user_id=6, role=Role.STUDENT)


@pytest.fixture
def session_date() -> date:
    return date(2026, 2, 2)


@pytest.fixture
def classes() -> InMemoryClasses:
    return InMemoryClasses(
        [
            ClassSchedule(1, "IT101", "Programming 1", "MWF 9:00 AM-10:00 AM", "Lab 1", True, 3),
            ClassSchedule(2, "IT102", "Networks", "TTH 1:00 PM-2:00 PM", "Lab 2", True, 0),
            ClassSchedule(3, "IT103", "Archived", "", "Lab 3", False, 0),
        ]
    )


@pytest.fixture
def enrollment() -> InMemoryEnrollment:
    return InMemoryEnrollment(
        {
            1: [make_student(6, "Santos"), make_student(7, "Cruz"), make_student(8, "Reyes")],
            2: [],
        }
    )


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def logs() -> InMemoryLogs:
    return InMemoryLogs()


@pytest.fixture
def service(attendance_repo, enrollment, classes) -> AttendanceSessionService:
    return AttendanceSessionService(attendance_repo, enrollment, classes, grace_minutes=15)


@pytest.fixture
def service_with_logs(attendance_repo, enrollment, classes, logs) -> AttendanceSessionService:
    return AttendanceSessionService(attendance_repo, enrollment, classes, logs, grace_minutes=15)
