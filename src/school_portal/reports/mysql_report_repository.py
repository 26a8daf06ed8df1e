from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone
from ..grading.model import ScoredItem
from . import queries
from .model import AssignmentAttendance, AttendanceSummary, ScoreRow, SessionRow, StudentAttendance
from .repository import ReportRepository


def _summary(r: dict) -> AttendanceSummary:
    return AttendanceSummary(
        total=int(r.get("total") or 0),
        present=int(r.get("present") or 0),
        absent=int(r.get("absent") or 0),
        late=int(r.get("late") or 0),
        justified=int(r.get("justified") or 0),
        pending=int(r.get("pending") or 0),
        rejected=int(r.get("rejected") or 0),
        needs_justification=int(r.get("needs_justification") or 0),
    )


def _score_row(r: dict) -> ScoreRow:
    score = None
    if r.get("points") is not None:
        score = ScoredItem(
            enroll_id=int(r["enroll_id"]),
            item_id=int(r["item_id"]),
            points=as_float(r["points"]),
            max_points=as_float(r["max_points"]),
            weight=as_float(r.get("weight")),
        )
    return ScoreRow(
        class_subject_id=int(r["class_subject_id"]),
        class_code=r["class_code"],
        subject_name=r["subject_name"],
        student_id=(int(r["student_id"]) if r.get("student_id") is not None else None),
        score=score,
    )


class MySQLReportRepository(ReportRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _rows(self, query: queries.Query) -> list[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(query.sql, query.params)
            return fetchall(cur)

    def attendance_by_student(
        self, *, student_ids: Optional[Sequence[int]], teacher_id: Optional[int] = None
    ) -> Sequence[StudentAttendance]:
        if student_ids is not None and not student_ids:
            return []
        rows = self._rows(queries.attendance_by_student(student_ids=student_ids, teacher_id=teacher_id))
        return [
            StudentAttendance(
                student_id=int(r["student_id"]),
                first_name=r["first_name"],
                last_name=r["last_name"],
                summary=_summary(r),
            )
            for r in rows
        ]

    def attendance_by_assignment(self, *, teacher_id: Optional[int]) -> Sequence[AssignmentAttendance]:
        rows = self._rows(queries.attendance_by_assignment(teacher_id=teacher_id))
        return [
            AssignmentAttendance(
                class_subject_id=int(r["class_subject_id"]),
                class_code=r["class_code"],
                subject_name=r["subject_name"],
                summary=_summary(r),
            )
            for r in rows
        ]

    def assignment_scores(
        self,
        *,
        teacher_id: Optional[int] = None,
        class_subject_ids: Optional[Sequence[int]] = None,
    ) -> Sequence[ScoreRow]:
        if class_subject_ids is not None and not class_subject_ids:
            return []
        rows = self._rows(queries.assignment_scores(teacher_id=teacher_id, class_subject_ids=class_subject_ids))
        return [_score_row(r) for r in rows]

    def student_scores(self, *, student_ids: Sequence[int], teacher_id: Optional[int] = None) -> Sequence[ScoreRow]:
        if not student_ids:
            return []
        rows = self._rows(queries.student_scores(student_ids=student_ids, teacher_id=teacher_id))
        return [_score_row(r) for r in rows]

    def students_taught_by(self, teacher_id: int) -> Sequence[int]:
        return [int(r["student_id"]) for r in self._rows(queries.students_taught_by(teacher_id=teacher_id))]

    def sessions_on(self, *, day: date, teacher_id: Optional[int]) -> Sequence[SessionRow]:
        rows = self._rows(queries.sessions_on(day=day, teacher_id=teacher_id))
        return [
            SessionRow(
                period_id=int(r["period_id"]),
                period_date=r["period_date"],
                period_label=r["period_label"],
                class_subject_id=int(r["class_subject_id"]),
                class_code=r["class_code"],
                subject_name=r["subject_name"],
                enrolled=int(r.get("enrolled") or 0),
                recorded=int(r.get("recorded") or 0),
            )
            for r in rows
        ]

    def pending_justifications_count(self, *, homeroom_teacher_id: Optional[int]) -> int:
        query = queries.pending_justifications_count(homeroom_teacher_id=homeroom_teacher_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(query.sql, query.params)
            r = fetchone(cur)
            return int(r["pending"]) if r else 0
