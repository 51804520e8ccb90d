from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ...classes.descriptor import ScheduleDescriptor
from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class PresentStrategy(AttendanceStrategy):
    """Logged in before the session ended and within the grace period."""

    def decide(
        self,
        *,
        first_login: Optional[datetime],
        session_date: date,
        schedule: Optional[ScheduleDescriptor],
        grace_minutes: int,
    ) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)
