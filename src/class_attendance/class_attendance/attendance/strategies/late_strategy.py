from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ...classes.descriptor import ScheduleDescriptor
from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """First login after the schedule's start time plus grace."""

    def decide(
        self,
        *,
        first_login: Optional[datetime],
        session_date: date,
        schedule: Optional[ScheduleDescriptor],
        grace_minutes: int,
    ) -> StatusDecision:
        if first_login is None or schedule is None:
            return StatusDecision(status=AttendanceStatus.LATE)

        start = datetime.combine(session_date, schedule.start)
        minutes = int((first_login - start).total_seconds() // 60)
        return StatusDecision(status=AttendanceStatus.LATE, note=f"Late by {minutes} min")
