from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AssignmentAttendance, ScoreRow, SessionRow, StudentAttendance


class ReportRepository(Protocol):
    """Read-only aggregation queries."""

    def attendance_by_student(
        self, *, student_ids: Optional[Sequence[int]], teacher_id: Optional[int] = None
    ) -> Sequence[StudentAttendance]:
        """Every requested student gets a row, with zero counts when nothing is recorded."""

        raise NotImplementedError

    def attendance_by_assignment(self, *, teacher_id: Optional[int]) -> Sequence[AssignmentAttendance]:
        raise NotImplementedError

    def assignment_scores(
        self,
        *,
        teacher_id: Optional[int] = None,
        class_subject_ids: Optional[Sequence[int]] = None,
    ) -> Sequence[ScoreRow]:
        raise NotImplementedError

    def student_scores(self, *, student_ids: Sequence[int], teacher_id: Optional[int] = None) -> Sequence[ScoreRow]:
        raise NotImplementedError

    def students_taught_by(self, teacher_id: int) -> Sequence[int]:
        raise NotImplementedError

    def sessions_on(self, *, day: date, teacher_id: Optional[int]) -> Sequence[SessionRow]:
        raise NotImplementedError

    def pending_justifications_count(self, *, homeroom_teacher_id: Optional[int]) -> int:
        raise NotImplementedError
