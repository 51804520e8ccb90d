from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ClassSchedule:
    """A class offering as the engine sees it (read-only).

    `schedule` is the free-text descriptor, e.g. "MWF 9:00 AM-10:00 AM".
    """

    class_id: int
    subject_code: str
    subject_name: str
    schedule: str
    room: str
    is_active: bool = True
    enrolled_count: int = 0
