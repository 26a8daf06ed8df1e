"""Named, parameterized query builders for the reporters.

Each builder returns a ``Query``; scope filters are always bound as parameters,
never formatted into the SQL text.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional, Sequence, Tuple

from ..database.mysql_base import in_clause


@dataclass(frozen=True)
class Query:
    sql: str
    params: Tuple[Any, ...] = ()


_COUNT_COLUMNS = """
    COUNT(a.att_id) AS total,
    COALESCE(SUM(a.status='P'), 0) AS present,
    COALESCE(SUM(a.status='A'), 0) AS absent,
    COALESCE(SUM(a.status='L'), 0) AS late,
    COALESCE(SUM(a.status='A' AND a.approved=1), 0) AS justified,
    COALESCE(SUM(a.status='A' AND a.justification IS NOT NULL AND a.approved IS NULL), 0) AS pending,
    COALESCE(SUM(a.status='A' AND a.approved=0), 0) AS rejected,
    COALESCE(SUM(a.status='A' AND a.justification IS NULL AND a.approved IS NULL), 0) AS needs_justification
"""


class _Where:
    def __init__(self):
        self.clauses: list[str] = []
        self.params: list[Any] = []

    def add(self, clause: str, *params: Any) -> None:
        self.clauses.append(clause)
        self.params.extend(params)

    def add_in(self, column: str, values: Sequence[int]) -> None:
        placeholders, ids = in_clause(values)
        self.add(f"{column} IN {placeholders}", *ids)

    def sql(self) -> str:
        return " AND ".join(self.clauses) if self.clauses else "1=1"


def attendance_by_student(*, student_ids: Optional[Sequence[int]], teacher_id: Optional[int] = None) -> Query:
    """One row per student in scope; students without attendance get zero counts."""
    join_on = "a.enroll_id = e.enroll_id"
    join_params: Tuple[Any, ...] = ()
    if teacher_id is not None:
        join_on += " AND cs.teacher_id=%s"
        join_params = (int(teacher_id),)

    where = _Where()
    if student_ids is not None:
        where.add_in("s.student_id", student_ids)
    return Query(
        f"""
        SELECT s.student_id, s.first_name, s.last_name, {_COUNT_COLUMNS}
        FROM students s
        LEFT JOIN enrollments e ON e.student_id = s.student_id
        LEFT JOIN (
            attendance a
            JOIN periods p ON p.period_id = a.period_id
            JOIN class_subjects cs ON cs.class_subject_id = p.class_subject_id
        ) ON {join_on}
        WHERE {where.sql()}
        GROUP BY s.student_id, s.first_name, s.last_name
        ORDER BY s.last_name, s.first_name
        """,
        join_params + tuple(where.params),
    )


def attendance_by_assignment(*, teacher_id: Optional[int]) -> Query:
    where = _Where()
    if teacher_id is not None:
        where.add("cs.teacher_id=%s", int(teacher_id))
    return Query(
        f"""
        SELECT cs.class_subject_id, c.class_code, subj.name AS subject_name, {_COUNT_COLUMNS}
        FROM class_subjects cs
        JOIN classes c ON c.class_id = cs.class_id
        JOIN subjects subj ON subj.subject_id = cs.subject_id
        LEFT JOIN periods p ON p.class_subject_id = cs.class_subject_id
        LEFT JOIN attendance a ON a.period_id = p.period_id
        WHERE {where.sql()}
        GROUP BY cs.class_subject_id, c.class_code, subj.name
        ORDER BY c.class_code, subj.name
        """,
        tuple(where.params),
    )


def assignment_scores(
    *,
    teacher_id: Optional[int] = None,
    class_subject_ids: Optional[Sequence[int]] = None,
) -> Query:
    """Every assignment in scope with its grades; ungraded assignments come back with NULL points."""
    where = _Where()
    if teacher_id is not None:
        where.add("cs.teacher_id=%s", int(teacher_id))
    if class_subject_ids is not None:
        where.add_in("cs.class_subject_id", class_subject_ids)
    return Query(
        f"""
        SELECT cs.class_subject_id, c.class_code, subj.name AS subject_name,
               g.enroll_id, gi.item_id, g.points, gi.max_points, gi.weight
        FROM class_subjects cs
        JOIN classes c ON c.class_id = cs.class_id
        JOIN subjects subj ON subj.subject_id = cs.subject_id
        LEFT JOIN grade_items gi ON gi.class_subject_id = cs.class_subject_id
        LEFT JOIN grades g ON g.item_id = gi.item_id
        WHERE {where.sql()}
        ORDER BY c.class_code, subj.name
        """,
        tuple(where.params),
    )


def student_scores(*, student_ids: Sequence[int], teacher_id: Optional[int] = None) -> Query:
    where = _Where()
    where.add_in("e.student_id", student_ids)
    if teacher_id is not None:
        where.add("cs.teacher_id=%s", int(teacher_id))
    return Query(
        f"""
        SELECT e.student_id, cs.class_subject_id, c.class_code, subj.name AS subject_name,
               g.enroll_id, gi.item_id, g.points, gi.max_points, gi.weight
        FROM grades g
        JOIN grade_items gi ON gi.item_id = g.item_id
        JOIN enrollments e ON e.enroll_id = g.enroll_id
        JOIN class_subjects cs ON cs.class_subject_id = gi.class_subject_id
        JOIN classes c ON c.class_id = cs.class_id
        JOIN subjects subj ON subj.subject_id = cs.subject_id
        WHERE {where.sql()}
        ORDER BY e.student_id, subj.name
        """,
        tuple(where.params),
    )


def students_taught_by(*, teacher_id: int) -> Query:
    return Query(
        """
        SELECT DISTINCT e.student_id
        FROM enrollments e
        JOIN class_subjects cs ON cs.class_id = e.class_id
        WHERE cs.teacher_id=%s
        """,
        (int(teacher_id),),
    )


def sessions_on(*, day: date, teacher_id: Optional[int]) -> Query:
    where = _Where()
    where.add("p.period_date=%s", day)
    if teacher_id is not None:
        where.add("cs.teacher_id=%s", int(teacher_id))
    return Query(
        f"""
        SELECT p.period_id, p.period_date, p.period_label, cs.class_subject_id,
               c.class_code, subj.name AS subject_name,
               (SELECT COUNT(*) FROM enrollments e WHERE e.class_id = cs.class_id) AS enrolled,
               (SELECT COUNT(*) FROM attendance a WHERE a.period_id = p.period_id) AS recorded
        FROM periods p
        JOIN class_subjects cs ON cs.class_subject_id = p.class_subject_id
        JOIN classes c ON c.class_id = cs.class_id
        JOIN subjects subj ON subj.subject_id = cs.subject_id
        WHERE {where.sql()}
        ORDER BY p.period_label, c.class_code
        """,
        tuple(where.params),
    )


def pending_justifications_count(*, homeroom_teacher_id: Optional[int]) -> Query:
    where = _Where()
    where.add("a.status='A' AND a.justification IS NOT NULL AND a.approved IS NULL")
    if homeroom_teacher_id is not None:
        where.add("c.homeroom_teacher_id=%s", int(homeroom_teacher_id))
    return Query(
        f"""
        SELECT COUNT(*) AS pending
        FROM attendance a
        JOIN enrollments e ON e.enroll_id = a.enroll_id
        JOIN classes c ON c.class_id = e.class_id
        WHERE {where.sql()}
        """,
        tuple(where.params),
    )
