from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for authorization. ADMIN satisfies every role check."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"


class AttendanceStatus(str, Enum):
    """Single-character attendance codes as stored in the database."""

    PRESENT = "P"
    ABSENT = "A"
    LATE = "L"

    @property
    def counts_as_attended(self) -> bool:
        return self in (AttendanceStatus.PRESENT, AttendanceStatus.LATE)


class ApprovalState(str, Enum):
    """Derived state of an attendance record's justification."""

    NOT_APPLICABLE = "NOT_APPLICABLE"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
