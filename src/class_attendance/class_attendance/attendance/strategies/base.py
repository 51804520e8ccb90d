from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ...classes.descriptor import ScheduleDescriptor
from ...core.enums import AttendanceStatus


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    note: Optional[str] = None


class AttendanceStrategy(ABC):
    """Strategy Pattern: decide a first-pass status from a student's login logs."""

    @abstractmethod
    def decide(
        self,
        *,
        first_login: Optional[datetime],
        session_date: date,
        schedule: Optional[ScheduleDescriptor],
        grace_minutes: int,
    ) -> StatusDecision:
        raise NotImplementedError
