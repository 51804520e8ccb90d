from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import ClassSchedule


class ClassRepository(Protocol):
    """Read access to the class-management collaborator."""

    def get_by_id(self, class_id: int) -> Optional[ClassSchedule]:
        raise NotImplementedError

    def list_active(self) -> Sequence[ClassSchedule]:
        raise NotImplementedError
