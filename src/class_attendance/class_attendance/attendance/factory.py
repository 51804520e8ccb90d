from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from ..classes.descriptor import ScheduleDescriptor
from .strategies.absent_strategy import AbsentStrategy
from .strategies.base import AttendanceStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.present_strategy import PresentStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose the strategy that derives a status from logs."""

    def for_logs(
        self,
        *,
        first_login: Optional[datetime],
        session_date: date,
        schedule: Optional[ScheduleDescriptor],
        grace_minutes: int,
    ) -> AttendanceStrategy:
        if first_login is None:
            return AbsentStrategy()

        # Without a parsable schedule there is no threshold to compare against.
        if schedule is None:
            return PresentStrategy()

        session_end = datetime.combine(session_date, schedule.end)
        if first_login >= session_end:
            return AbsentStrategy()

        session_start = datetime.combine(session_date, schedule.start)
        if first_login > session_start + timedelta(minutes=grace_minutes):
            return LateStrategy()
        return PresentStrategy()
