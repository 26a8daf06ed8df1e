from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import ClassSubjectAssignment, Enrollment, HomeroomClass, Period, RosterEntry


class SchoolRepository(Protocol):
    # Structure (admin)
    def create_subject(self, *, name: str) -> int:
        raise NotImplementedError

    def create_class(self, *, class_code: str, title: str, homeroom_teacher_id: int) -> int:
        raise NotImplementedError

    def create_assignment(self, *, class_id: int, subject_id: int, teacher_id: int) -> int:
        raise NotImplementedError

    def enroll(self, *, student_id: int, class_id: int) -> int:
        raise NotImplementedError

    def create_period(self, *, class_subject_id: int, period_date: date, period_label: str) -> int:
        raise NotImplementedError

    def update_period(self, period_id: int, *, period_date: date, period_label: str) -> None:
        raise NotImplementedError

    def delete_period(self, period_id: int) -> Sequence[str]:
        """Delete the period with its attendance rows in one transaction.

        Returns the justification document references those rows pointed to.
        """

        raise NotImplementedError

    # Lookups
    def teacher_exists(self, teacher_id: int) -> bool:
        raise NotImplementedError

    def subject_exists(self, subject_id: int) -> bool:
        raise NotImplementedError

    def get_class(self, class_id: int) -> Optional[HomeroomClass]:
        raise NotImplementedError

    def get_assignment(self, class_subject_id: int) -> Optional[ClassSubjectAssignment]:
        raise NotImplementedError

    def get_enrollment(self, enroll_id: int) -> Optional[Enrollment]:
        raise NotImplementedError

    def get_period(self, period_id: int) -> Optional[Period]:
        raise NotImplementedError

    def list_enrollments_for_class(self, class_id: int) -> Sequence[Enrollment]:
        raise NotImplementedError

    def list_roster(self, class_id: int) -> Sequence[RosterEntry]:
        """Enrolled students of a class, ordered by last and first name."""

        raise NotImplementedError

    def list_assignments_for_teacher(self, teacher_id: Optional[int]) -> Sequence[dict]:
        """UI rows joined with class and subject; ``None`` lists every assignment."""

        raise NotImplementedError
