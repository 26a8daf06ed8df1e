from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import FrozenSet, List, Optional, Sequence

from ..core.enums import Role
from ..grading.model import ScoredItem


@dataclass(frozen=True)
class ReportScope:
    """What a caller may aggregate over, derived from the session only.

    ``student_ids`` of None means unrestricted (administrators).
    """

    role: Role
    teacher_id: Optional[int] = None
    student_ids: Optional[FrozenSet[int]] = None

    @property
    def is_school_wide(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_personal(self) -> bool:
        return self.role in (Role.STUDENT, Role.PARENT)

    def students_for(self, requested: Optional[int]) -> Optional[List[int]]:
        """Narrow to ``requested``; an out-of-scope request yields []."""
        if requested is None:
            return None if self.student_ids is None else sorted(self.student_ids)
        if self.student_ids is None or int(requested) in self.student_ids:
            return [int(requested)]
        return []


@dataclass(frozen=True)
class AttendanceSummary:
    total: int = 0
    present: int = 0
    absent: int = 0
    late: int = 0
    justified: int = 0
    pending: int = 0
    rejected: int = 0
    needs_justification: int = 0

    @property
    def rate(self) -> float:
        """Percentage of periods attended; Late counts as attended."""
        if self.total <= 0:
            return 0.0
        return round((self.present + self.late) / self.total * 100, 1)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "present": self.present,
            "absent": self.absent,
            "late": self.late,
            "justified": self.justified,
            "pending": self.pending,
            "rejected": self.rejected,
            "needs_justification": self.needs_justification,
            "rate": self.rate,
        }


@dataclass(frozen=True)
class StudentAttendance:
    student_id: int
    first_name: str
    last_name: str
    summary: AttendanceSummary


@dataclass(frozen=True)
class AssignmentAttendance:
    class_subject_id: int
    class_code: str
    subject_name: str
    summary: AttendanceSummary


@dataclass(frozen=True)
class ScoreRow:
    """Assignment context for a score; ``score`` is None for an ungraded assignment."""

    class_subject_id: int
    class_code: str
    subject_name: str
    student_id: Optional[int] = None
    score: Optional[ScoredItem] = None


@dataclass(frozen=True)
class SessionRow:
    period_id: int
    period_date: date
    period_label: str
    class_subject_id: int
    class_code: str
    subject_name: str
    enrolled: int
    recorded: int

    @property
    def needs_attention(self) -> bool:
        return self.recorded < self.enrolled

    def to_dict(self) -> dict:
        return {
            "period_id": self.period_id,
            "period_date": self.period_date.strftime("%Y-%m-%d"),
            "period_label": self.period_label,
            "class_subject_id": self.class_subject_id,
            "class_code": self.class_code,
            "subject_name": self.subject_name,
            "enrolled": self.enrolled,
            "recorded": self.recorded,
            "needs_attention": self.needs_attention,
        }


def summaries_total(items: Sequence[AttendanceSummary]) -> AttendanceSummary:
    return AttendanceSummary(
        total=sum(s.total for s in items),
        present=sum(s.present for s in items),
        absent=sum(s.absent for s in items),
        late=sum(s.late for s in items),
        justified=sum(s.justified for s in items),
        pending=sum(s.pending for s in items),
        rejected=sum(s.rejected for s in items),
        needs_justification=sum(s.needs_justification for s in items),
    )
