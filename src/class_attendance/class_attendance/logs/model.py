from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import LogDirection


@dataclass(frozen=True)
class RawLogEntry:
    """A lab PC login or logout event. Owned by the log collaborator."""

    student_user_id: int
    timestamp: datetime
    direction: LogDirection
    pc_number: Optional[str] = None
