from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Login account. Profiles (teacher/student/parent) hang off ``user_id``."""

    user_id: int
    username: str
    password_hash: str
    role: Role
    is_active: bool = True
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class StudentProfile:
    student_id: int
    user_id: int
    first_name: str
    last_name: str
    dob: date
    class_code: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass(frozen=True)
class NewStudentProfile:
    first_name: str
    last_name: str
    dob: date
    class_code: str
