from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass
from typing import Iterable

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


@dataclass(frozen=True)
class SessionSummary:
    """Status counts for one loaded session.

    Excused rows are absences: they are counted in `absent` and reported again
    in `excused`, so present + late + absent + none always equals total.
    """

    present: int = 0
    late: int = 0
    absent: int = 0
    none: int = 0
    excused: int = 0

    @property
    def total(self) -> int:
        return self.present + self.late + self.absent + self.none

    @property
    def marked(self) -> int:
        return self.total - self.none

    @property
    def can_archive(self) -> bool:
        """Export/save needs at least one marked row; the caller enforces it."""
        return self.marked > 0

    def as_dict(self) -> dict:
        out = asdict(self)
        out["total"] = self.total
        out["can_archive"] = self.can_archive
        return out


def summarize(records: Iterable[AttendanceRecord]) -> SessionSummary:
    counts = Counter(r.status for r in records)
    excused = counts[AttendanceStatus.EXCUSED]
    return SessionSummary(
        present=counts[AttendanceStatus.PRESENT],
        late=counts[AttendanceStatus.LATE],
        absent=counts[AttendanceStatus.ABSENT] + excused,
        none=counts[AttendanceStatus.NONE],
        excused=excused,
    )
