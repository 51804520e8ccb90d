from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ...classes.descriptor import ScheduleDescriptor
from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class AbsentStrategy(AttendanceStrategy):
    """No login at all, or the first login came after the session ended."""

    def decide(
        self,
        *,
        first_login: Optional[datetime],
        session_date: date,
        schedule: Optional[ScheduleDescriptor],
        grace_minutes: int,
    ) -> StatusDecision:
        if first_login is None:
            return StatusDecision(status=AttendanceStatus.ABSENT)
        return StatusDecision(status=AttendanceStatus.ABSENT, note="Logged in after session end")
