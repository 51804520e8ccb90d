from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EnrolledStudent:
    """One row of an enrollment snapshot, read when a session is generated."""

    student_user_id: int
    student_code: str
    first_name: str
    middle_name: str
    last_name: str
