from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_optional_bool, db_cursor, fetchall, fetchone, in_clause
from .model import AttendanceDetails, AttendanceRecord
from .repository import AttendanceRepository

_RECORD_COLUMNS = "a.att_id, a.enroll_id, a.period_id, a.status, a.justification, a.approved, a.reject_reason, a.justification_file"


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["att_id"]),
        enroll_id=int(r["enroll_id"]),
        period_id=int(r["period_id"]),
        status=AttendanceStatus(r["status"]),
        justification=r.get("justification"),
        approved=as_optional_bool(r.get("approved")),
        reject_reason=r.get("reject_reason"),
        justification_file=r.get("justification_file"),
    )


def _to_row(r: dict) -> dict:
    record = _to_record(r)
    return {
        "att_id": record.attendance_id,
        "enroll_id": record.enroll_id,
        "period_id": record.period_id,
        "status": record.status.value,
        "justification": record.justification,
        "approved": record.approved,
        "approval_state": record.approval_state.value,
        "reject_reason": record.reject_reason,
        "has_document": bool(record.justification_file),
        "period_date": r["period_date"].strftime("%Y-%m-%d") if r.get("period_date") else None,
        "period_label": r.get("period_label"),
        "student_id": int(r["student_id"]),
        "first_name": r.get("first_name"),
        "last_name": r.get("last_name"),
        "class_code": r.get("class_code"),
        "subject_name": r.get("subject_name"),
    }


_ROW_SELECT = f"""
    SELECT {_RECORD_COLUMNS},
           p.period_date, p.period_label,
           s.student_id, s.first_name, s.last_name,
           c.class_code, subj.name AS subject_name
    FROM attendance a
    JOIN periods p ON p.period_id = a.period_id
    JOIN enrollments e ON e.enroll_id = a.enroll_id
    JOIN students s ON s.student_id = e.student_id
    JOIN classes c ON c.class_id = e.class_id
    JOIN class_subjects cs ON cs.class_subject_id = p.class_subject_id
    JOIN subjects subj ON subj.subject_id = cs.subject_id
"""


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_enrollment_and_period(self, enroll_id: int, period_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance a WHERE a.enroll_id=%s AND a.period_id=%s",
                (int(enroll_id), int(period_id)),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_details(self, attendance_id: int) -> Optional[AttendanceDetails]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS},
                       s.student_id, s.first_name, s.last_name,
                       c.class_id, c.class_code
                FROM attendance a
                JOIN enrollments e ON e.enroll_id = a.enroll_id
                JOIN students s ON s.student_id = e.student_id
                JOIN classes c ON c.class_id = e.class_id
                WHERE a.att_id=%s
                """,
                (int(attendance_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return AttendanceDetails(
                record=_to_record(r),
                student_id=int(r["student_id"]),
                first_name=r["first_name"],
                last_name=r["last_name"],
                class_id=int(r["class_id"]),
                class_code=r["class_code"],
            )

    def list_for_period(self, period_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance a WHERE a.period_id=%s ORDER BY a.enroll_id",
                (int(period_id),),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def insert(self, *, enroll_id: int, period_id: int, status: AttendanceStatus) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO attendance(enroll_id, period_id, status) VALUES(%s,%s,%s)",
                (int(enroll_id), int(period_id), status.value),
            )
            return int(cur.lastrowid)

    def update_status(self, attendance_id: int, *, status: AttendanceStatus, clear_justification: bool) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            if clear_justification:
                cur.execute(
                    """
                    UPDATE attendance
                    SET status=%s, justification=NULL, approved=NULL,
                        reject_reason=NULL, justification_file=NULL
                    WHERE att_id=%s
                    """,
                    (status.value, int(attendance_id)),
                )
            else:
                cur.execute("UPDATE attendance SET status=%s WHERE att_id=%s", (status.value, int(attendance_id)))

    def save_justification(self, attendance_id: int, *, text: str, document_ref: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET justification=%s, justification_file=%s, approved=NULL, reject_reason=NULL
                WHERE att_id=%s
                """,
                (text, document_ref, int(attendance_id)),
            )
            return cur.rowcount > 0

    def set_decision(self, attendance_id: int, *, approved: bool, reject_reason: Optional[str]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance SET approved=%s, reject_reason=%s WHERE att_id=%s",
                (1 if approved else 0, reject_reason, int(attendance_id)),
            )

    def list_pending(self, *, homeroom_teacher_id: Optional[int], limit: int = 200) -> Sequence[dict]:
        clauses = ["a.status='A'", "a.justification IS NOT NULL", "a.approved IS NULL"]
        params: list[object] = []
        if homeroom_teacher_id is not None:
            clauses.append("c.homeroom_teacher_id=%s")
            params.append(int(homeroom_teacher_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_ROW_SELECT}
                WHERE {' AND '.join(clauses)}
                ORDER BY p.period_date DESC, s.last_name, s.first_name
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_row(r) for r in fetchall(cur)]

    def list_for_students(self, *, student_ids: Optional[Sequence[int]], limit: int = 500) -> Sequence[dict]:
        where = "1=1"
        params: tuple = ()
        if student_ids is not None:
            if not student_ids:
                return []
            placeholders, params = in_clause(student_ids)
            where = f"s.student_id IN {placeholders}"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_ROW_SELECT}
                WHERE {where}
                ORDER BY p.period_date DESC, p.period_label, s.last_name, s.first_name
                LIMIT %s
                """,
                tuple(params) + (int(limit),),
            )
            return [_to_row(r) for r in fetchall(cur)]
