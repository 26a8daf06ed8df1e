from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceDetails, AttendanceRecord


class AttendanceRepository(Protocol):
    def get_for_enrollment_and_period(self, enroll_id: int, period_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_details(self, attendance_id: int) -> Optional[AttendanceDetails]:
        raise NotImplementedError

    def list_for_period(self, period_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def insert(self, *, enroll_id: int, period_id: int, status: AttendanceStatus) -> int:
        """Raises DuplicateRecord when (enroll_id, period_id) already exists."""

        raise NotImplementedError

    def update_status(self, attendance_id: int, *, status: AttendanceStatus, clear_justification: bool) -> None:
        raise NotImplementedError

    def save_justification(self, attendance_id: int, *, text: str, document_ref: Optional[str]) -> bool:
        """Store text and document; approval and reject reason go back to NULL."""

        raise NotImplementedError

    def set_decision(self, attendance_id: int, *, approved: bool, reject_reason: Optional[str]) -> None:
        raise NotImplementedError

    def list_pending(self, *, homeroom_teacher_id: Optional[int], limit: int = 200) -> Sequence[dict]:
        """Submitted, undecided justifications; ``None`` means every class."""

        raise NotImplementedError

    def list_for_students(self, *, student_ids: Optional[Sequence[int]], limit: int = 500) -> Sequence[dict]:
        """UI rows for the given students; ``None`` means every student."""

        raise NotImplementedError
