from __future__ import annotations

import logging
from collections import OrderedDict, defaultdict
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..common.datetime_utils import now_local
from ..core.enums import Role
from ..grading.calculator.base import AverageCalculator
from ..grading.model import ScoredItem
from ..school.access import SchoolAccess
from ..security.guard import is_admin, require_authenticated
from ..security.session import RequestContext
from .model import ReportScope, ScoreRow, summaries_total
from .repository import ReportRepository

logger = logging.getLogger(__name__)


def _round(value: Optional[float]) -> Optional[float]:
    return round(value, 1) if value is not None else None


class ReportService:
    """Read-only dashboards and reports, always limited to the caller's scope."""

    def __init__(
        self,
        reports: ReportRepository,
        access: SchoolAccess,
        *,
        calculator: AverageCalculator,
        clock: Callable[[], datetime] = now_local,
    ):
        self._reports = reports
        self._access = access
        self._calculator = calculator
        self._clock = clock

    def resolve_scope(self, ctx: RequestContext) -> ReportScope:
        require_authenticated(ctx)
        if is_admin(ctx):
            return ReportScope(role=Role.ADMIN)
        if ctx.role == Role.TEACHER:
            teacher_id = self._access.teacher_id(ctx)
            if teacher_id is None:
                return ReportScope(role=Role.TEACHER, teacher_id=None, student_ids=frozenset())
            return ReportScope(
                role=Role.TEACHER,
                teacher_id=teacher_id,
                student_ids=frozenset(self._reports.students_taught_by(teacher_id)),
            )
        visible = self._access.visible_student_ids(ctx) or set()
        return ReportScope(role=ctx.role, student_ids=frozenset(visible))

    # -------- Attendance --------
    def attendance_report(self, ctx: RequestContext, *, student_id: Optional[int] = None) -> dict:
        scope = self.resolve_scope(ctx)
        out: dict = {"scope": scope.role.value, "school": None, "assignments": [], "students": []}

        if scope.is_personal or student_id is not None:
            ids = scope.students_for(student_id) or []
            if not ids:
                return out
            rows = self._reports.attendance_by_student(student_ids=ids, teacher_id=scope.teacher_id)
            out["students"] = [
                {
                    "student_id": r.student_id,
                    "first_name": r.first_name,
                    "last_name": r.last_name,
                    **r.summary.to_dict(),
                }
                for r in rows
            ]
            return out

        if scope.role == Role.TEACHER and scope.teacher_id is None:
            return out

        rows = self._reports.attendance_by_assignment(teacher_id=scope.teacher_id)
        out["assignments"] = [
            {
                "class_subject_id": r.class_subject_id,
                "class_code": r.class_code,
                "subject_name": r.subject_name,
                **r.summary.to_dict(),
            }
            for r in rows
        ]
        if scope.is_school_wide:
            # Every record belongs to exactly one assignment's period.
            out["school"] = summaries_total([r.summary for r in rows]).to_dict()
        return out

    # -------- Grades --------
    def _class_averages(self, rows: Sequence[ScoreRow]) -> "OrderedDict[int, dict]":
        grouped: "OrderedDict[int, dict]" = OrderedDict()
        scores: Dict[int, List[ScoredItem]] = defaultdict(list)
        for r in rows:
            grouped.setdefault(
                r.class_subject_id,
                {"class_subject_id": r.class_subject_id, "class_code": r.class_code, "subject_name": r.subject_name},
            )
            if r.score is not None:
                scores[r.class_subject_id].append(r.score)

        for cs_id, entry in grouped.items():
            entry["class_average"] = _round(self._calculator.class_average(scores.get(cs_id, [])))
        return grouped

    def grades_report(self, ctx: RequestContext, *, student_id: Optional[int] = None) -> dict:
        scope = self.resolve_scope(ctx)
        out: dict = {"scope": scope.role.value, "assignments": [], "students": []}

        if scope.is_personal or student_id is not None:
            ids = scope.students_for(student_id) or []
            if not ids:
                return out
            out["students"] = self._student_grades(ids, teacher_id=scope.teacher_id)
            return out

        if scope.role == Role.TEACHER and scope.teacher_id is None:
            return out

        rows = self._reports.assignment_scores(teacher_id=scope.teacher_id)
        out["assignments"] = list(self._class_averages(rows).values())
        return out

    def _student_grades(self, student_ids: Sequence[int], *, teacher_id: Optional[int]) -> List[dict]:
        rows = self._reports.student_scores(student_ids=student_ids, teacher_id=teacher_id)

        per_subject: "OrderedDict[Tuple[int, int], List[ScoreRow]]" = OrderedDict()
        for r in rows:
            per_subject.setdefault((int(r.student_id), r.class_subject_id), []).append(r)

        cs_ids = sorted({cs_id for _, cs_id in per_subject})
        class_avgs = self._class_averages(self._reports.assignment_scores(class_subject_ids=cs_ids)) if cs_ids else {}

        by_student: "OrderedDict[int, List[dict]]" = OrderedDict((sid, []) for sid in student_ids)
        for (sid, cs_id), subject_rows in per_subject.items():
            first = subject_rows[0]
            by_student.setdefault(sid, []).append(
                {
                    "class_subject_id": cs_id,
                    "class_code": first.class_code,
                    "subject_name": first.subject_name,
                    "average": _round(self._calculator.student_average([r.score for r in subject_rows if r.score])),
                    "class_average": class_avgs.get(cs_id, {}).get("class_average"),
                }
            )

        return [{"student_id": sid, "subjects": subjects} for sid, subjects in by_student.items()]

    # -------- Sessions --------
    def sessions_report(self, ctx: RequestContext, *, day: Optional[date] = None) -> List[dict]:
        scope = self.resolve_scope(ctx)
        if scope.is_personal or (scope.role == Role.TEACHER and scope.teacher_id is None):
            return []
        day = day or self._clock().date()
        return [s.to_dict() for s in self._reports.sessions_on(day=day, teacher_id=scope.teacher_id)]

    # -------- Dashboard --------
    def dashboard(self, ctx: RequestContext) -> dict:
        scope = self.resolve_scope(ctx)
        data: dict = {"role": scope.role.value, "username": ctx.username}

        if scope.is_school_wide:
            data["attendance"] = self.attendance_report(ctx)
            data["grades"] = self.grades_report(ctx)
        elif scope.role == Role.TEACHER:
            data["sessions_today"] = self.sessions_report(ctx)
            data["pending_justifications"] = (
                self._reports.pending_justifications_count(homeroom_teacher_id=scope.teacher_id)
                if scope.teacher_id is not None
                else 0
            )
            data["grades"] = self.grades_report(ctx)
        else:
            data["attendance"] = self.attendance_report(ctx)
            data["grades"] = self.grades_report(ctx)
        return data
