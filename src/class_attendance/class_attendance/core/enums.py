from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Portal roles. The attendance engine only distinguishes staff from students."""

    STUDENT = "student"
    WORKING_STUDENT = "working_student"
    TEACHER = "teacher"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"


class AttendanceStatus(str, Enum):
    """Per-student status stored with each attendance row.

    NONE is the empty sentinel: the row exists but nobody has marked it yet.
    """

    NONE = ""
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class LogDirection(str, Enum):
    IN = "in"
    OUT = "out"


class Weekday(int, Enum):
    MON = 0
    TUE = 1
    WED = 2
    THU = 3
    FRI = 4
    SAT = 5
    SUN = 6
