from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..core.exceptions import DuplicateRecord
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import NewStudentProfile, StudentProfile, User
from .repository import UserRepository

_USER_COLUMNS = "user_id, username, pass_hash, role, is_active, created_at"


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        username=row["username"],
        password_hash=row["pass_hash"],
        role=Role(row["role"]),
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_username(self, username: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE username=%s", (username,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def create_account(
        self,
        *,
        username: str,
        password_hash: str,
        role: Role,
        student: Optional[NewStudentProfile] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO users(username, pass_hash, role, is_active) VALUES(%s,%s,%s,1)",
                (username, password_hash, role.value),
            )
            user_id = int(cur.lastrowid)

            if role == Role.TEACHER:
                cur.execute("INSERT INTO teachers(user_id) VALUES(%s)", (user_id,))
            elif role == Role.PARENT:
                cur.execute("INSERT INTO parents(user_id) VALUES(%s)", (user_id,))
            elif role == Role.STUDENT and student is not None:
                cur.execute(
                    """
                    INSERT INTO students(user_id, first_name, last_name, dob, class_code)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (user_id, student.first_name, student.last_name, student.dob, student.class_code),
                )
            return user_id

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET is_active=%s WHERE user_id=%s", (1 if is_active else 0, int(user_id)))
            return cur.rowcount > 0

    def list_admin_view(self, *, role: Optional[Role] = None) -> Sequence[dict]:
        clauses = ["1=1"]
        params: list[object] = []
        if role is not None:
            clauses.append("u.role=%s")
            params.append(role.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT u.user_id, u.username, u.role, u.is_active, u.created_at,
                       t.teacher_id, s.student_id, s.first_name, s.last_name, s.class_code, p.parent_id
                FROM users u
                LEFT JOIN teachers t ON t.user_id = u.user_id
                LEFT JOIN students s ON s.user_id = u.user_id
                LEFT JOIN parents p ON p.user_id = u.user_id
                WHERE {' AND '.join(clauses)}
                ORDER BY u.user_id DESC
                """,
                tuple(params),
            )
            rows = fetchall(cur)
            out: list[dict] = []
            for r in rows:
                out.append(
                    {
                        "user_id": int(r["user_id"]),
                        "username": r["username"],
                        "role": r["role"],
                        "is_active": bool(r.get("is_active")),
                        "teacher_id": r.get("teacher_id"),
                        "student_id": r.get("student_id"),
                        "parent_id": r.get("parent_id"),
                        "name": (f"{r['first_name']} {r['last_name']}" if r.get("first_name") else None),
                        "class_code": r.get("class_code"),
                    }
                )
            return out

    def _profile_id(self, table: str, column: str, user_id: int) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {column} FROM {table} WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return int(row[column]) if row else None

    def teacher_id_for_user(self, user_id: int) -> Optional[int]:
        return self._profile_id("teachers", "teacher_id", user_id)

    def student_id_for_user(self, user_id: int) -> Optional[int]:
        return self._profile_id("students", "student_id", user_id)

    def parent_id_for_user(self, user_id: int) -> Optional[int]:
        return self._profile_id("parents", "parent_id", user_id)

    def student_ids_for_parent_user(self, user_id: int) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT sp.student_id
                FROM student_parent sp
                JOIN parents p ON p.parent_id = sp.parent_id
                WHERE p.user_id=%s
                ORDER BY sp.student_id
                """,
                (int(user_id),),
            )
            return [int(r["student_id"]) for r in fetchall(cur)]

    def get_student(self, student_id: int) -> Optional[StudentProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT student_id, user_id, first_name, last_name, dob, class_code
                FROM students
                WHERE student_id=%s
                """,
                (int(student_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return StudentProfile(
                student_id=int(r["student_id"]),
                user_id=int(r["user_id"]),
                first_name=r["first_name"],
                last_name=r["last_name"],
                dob=r["dob"],
                class_code=r["class_code"],
            )

    def parent_exists(self, parent_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS found FROM parents WHERE parent_id=%s", (int(parent_id),))
            return fetchone(cur) is not None

    def link_guardian(self, *, parent_id: int, student_id: int) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO student_parent(student_id, parent_id) VALUES(%s,%s)",
                    (int(student_id), int(parent_id)),
                )
                return True
        except DuplicateRecord:
            # Already linked; linking is idempotent.
            return False
