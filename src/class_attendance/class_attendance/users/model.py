from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role

STAFF_ROLES = frozenset({Role.TEACHER, Role.INSTRUCTOR, Role.ADMIN})


@dataclass(frozen=True)
class CurrentUser:
    """The actor behind a request.

    Passed explicitly into every operation that records who did something;
    there is no ambient logged-in user.
    """

    user_id: int
    role: Role

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES
