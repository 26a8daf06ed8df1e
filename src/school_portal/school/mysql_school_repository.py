from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ClassSubjectAssignment, Enrollment, HomeroomClass, Period, RosterEntry
from .repository import SchoolRepository


class MySQLSchoolRepository(SchoolRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _insert(self, sql: str, params: tuple) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return int(cur.lastrowid)

    def _exists(self, sql: str, params: tuple) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return fetchone(cur) is not None

    # -------- Structure --------
    def create_subject(self, *, name: str) -> int:
        return self._insert("INSERT INTO subjects(name) VALUES(%s)", (name,))

    def create_class(self, *, class_code: str, title: str, homeroom_teacher_id: int) -> int:
        return self._insert(
            "INSERT INTO classes(class_code, title, homeroom_teacher_id) VALUES(%s,%s,%s)",
            (class_code, title, int(homeroom_teacher_id)),
        )

    def create_assignment(self, *, class_id: int, subject_id: int, teacher_id: int) -> int:
        return self._insert(
            "INSERT INTO class_subjects(class_id, subject_id, teacher_id) VALUES(%s,%s,%s)",
            (int(class_id), int(subject_id), int(teacher_id)),
        )

    def enroll(self, *, student_id: int, class_id: int) -> int:
        return self._insert(
            "INSERT INTO enrollments(student_id, class_id) VALUES(%s,%s)",
            (int(student_id), int(class_id)),
        )

    def create_period(self, *, class_subject_id: int, period_date: date, period_label: str) -> int:
        return self._insert(
            "INSERT INTO periods(class_subject_id, period_date, period_label) VALUES(%s,%s,%s)",
            (int(class_subject_id), period_date, period_label),
        )

    def update_period(self, period_id: int, *, period_date: date, period_label: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE periods SET period_date=%s, period_label=%s WHERE period_id=%s",
                (period_date, period_label, int(period_id)),
            )

    def delete_period(self, period_id: int) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT justification_file FROM attendance WHERE period_id=%s AND justification_file IS NOT NULL",
                (int(period_id),),
            )
            documents = [r["justification_file"] for r in fetchall(cur)]
            cur.execute("DELETE FROM attendance WHERE period_id=%s", (int(period_id),))
            cur.execute("DELETE FROM periods WHERE period_id=%s", (int(period_id),))
            return documents

    # -------- Lookups --------
    def teacher_exists(self, teacher_id: int) -> bool:
        return self._exists("SELECT 1 AS found FROM teachers WHERE teacher_id=%s", (int(teacher_id),))

    def subject_exists(self, subject_id: int) -> bool:
        return self._exists("SELECT 1 AS found FROM subjects WHERE subject_id=%s", (int(subject_id),))

    def get_class(self, class_id: int) -> Optional[HomeroomClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT class_id, class_code, title, homeroom_teacher_id FROM classes WHERE class_id=%s",
                (int(class_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return HomeroomClass(
                class_id=int(r["class_id"]),
                class_code=r["class_code"],
                title=r["title"],
                homeroom_teacher_id=int(r["homeroom_teacher_id"]),
            )

    def get_assignment(self, class_subject_id: int) -> Optional[ClassSubjectAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT class_subject_id, class_id, subject_id, teacher_id
                FROM class_subjects
                WHERE class_subject_id=%s
                """,
                (int(class_subject_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return ClassSubjectAssignment(
                class_subject_id=int(r["class_subject_id"]),
                class_id=int(r["class_id"]),
                subject_id=int(r["subject_id"]),
                teacher_id=int(r["teacher_id"]),
            )

    def get_enrollment(self, enroll_id: int) -> Optional[Enrollment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT enroll_id, student_id, class_id FROM enrollments WHERE enroll_id=%s",
                (int(enroll_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Enrollment(enroll_id=int(r["enroll_id"]), student_id=int(r["student_id"]), class_id=int(r["class_id"]))

    def get_period(self, period_id: int) -> Optional[Period]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT period_id, class_subject_id, period_date, period_label FROM periods WHERE period_id=%s",
                (int(period_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Period(
                period_id=int(r["period_id"]),
                class_subject_id=int(r["class_subject_id"]),
                period_date=r["period_date"],
                period_label=r["period_label"],
            )

    def list_enrollments_for_class(self, class_id: int) -> Sequence[Enrollment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT enroll_id, student_id, class_id FROM enrollments WHERE class_id=%s ORDER BY enroll_id",
                (int(class_id),),
            )
            return [
                Enrollment(enroll_id=int(r["enroll_id"]), student_id=int(r["student_id"]), class_id=int(r["class_id"]))
                for r in fetchall(cur)
            ]

    def list_roster(self, class_id: int) -> Sequence[RosterEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT e.enroll_id, s.student_id, s.first_name, s.last_name
                FROM enrollments e
                JOIN students s ON s.student_id = e.student_id
                WHERE e.class_id=%s
                ORDER BY s.last_name, s.first_name
                """,
                (int(class_id),),
            )
            return [
                RosterEntry(
                    enroll_id=int(r["enroll_id"]),
                    student_id=int(r["student_id"]),
                    first_name=r["first_name"],
                    last_name=r["last_name"],
                )
                for r in fetchall(cur)
            ]

    def list_assignments_for_teacher(self, teacher_id: Optional[int]) -> Sequence[dict]:
        clauses = ["1=1"]
        params: list[object] = []
        if teacher_id is not None:
            clauses.append("cs.teacher_id=%s")
            params.append(int(teacher_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT cs.class_subject_id, cs.class_id, c.class_code, c.title,
                       cs.subject_id, s.name AS subject_name, cs.teacher_id
                FROM class_subjects cs
                JOIN classes c ON c.class_id = cs.class_id
                JOIN subjects s ON s.subject_id = cs.subject_id
                WHERE {' AND '.join(clauses)}
                ORDER BY c.class_code, s.name
                """,
                tuple(params),
            )
            return [
                {
                    "class_subject_id": int(r["class_subject_id"]),
                    "class_id": int(r["class_id"]),
                    "class_code": r["class_code"],
                    "class_title": r["title"],
                    "subject_id": int(r["subject_id"]),
                    "subject_name": r["subject_name"],
                    "teacher_id": int(r["teacher_id"]),
                }
                for r in fetchall(cur)
            ]
