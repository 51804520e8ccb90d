from __future__ import annotations

from typing import Protocol, Sequence

from .model import EnrolledStudent


class EnrollmentProvider(Protocol):
    def list_enrolled(self, class_id: int) -> Sequence[EnrolledStudent]:
        """Students enrolled in the class right now (no live subscription)."""

        raise NotImplementedError
