from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence

from .model import RawLogEntry


class LogProvider(Protocol):
    def logs_for(self, class_id: int, session_date: date) -> Sequence[RawLogEntry]:
        """Login/logout events of the class's students on that day."""

        raise NotImplementedError
