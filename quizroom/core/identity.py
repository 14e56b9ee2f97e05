"""Read-only identity context handed to components that need the current user."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# Role names used by the legacy user service.
_ROLE_ALIASES = {
    "professor": "teacher",
    "aluno": "student",
}


class UserRole(str, Enum):
    TEACHER = "teacher"
    STUDENT = "student"

    @classmethod
    def parse(cls, value: str) -> UserRole:
        normalized = value.strip().lower()
        normalized = _ROLE_ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError as exc:
            raise ValueError(f"Unknown user role: {value!r}") from exc


@dataclass(frozen=True, slots=True)
class SessionContext:
    """Identity of the current user. Supplied by the caller, never mutated."""

    user_id: str
    role: UserRole
    name: str | None = None

    @property
    def is_teacher(self) -> bool:
        return self.role is UserRole.TEACHER

    @property
    def is_student(self) -> bool:
        return self.role is UserRole.STUDENT
