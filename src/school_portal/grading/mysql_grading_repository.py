from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone
from .model import Grade, GradeItem, ScoredItem
from .repository import GradingRepository


def _to_item(r: dict) -> GradeItem:
    return GradeItem(
        item_id=int(r["item_id"]),
        class_subject_id=int(r["class_subject_id"]),
        name=r["name"],
        max_points=as_float(r["max_points"]),
        weight=as_float(r.get("weight")) or 1.0,
    )


def _to_grade(r: dict) -> Grade:
    return Grade(
        grade_id=int(r["grade_id"]),
        enroll_id=int(r["enroll_id"]),
        item_id=int(r["item_id"]),
        points=as_float(r["points"]),
        comment=r.get("comment"),
    )


class MySQLGradingRepository(GradingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Grade items --------
    def create_item(self, *, class_subject_id: int, name: str, max_points: float, weight: float) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO grade_items(class_subject_id, name, max_points, weight) VALUES(%s,%s,%s,%s)",
                (int(class_subject_id), name, max_points, weight),
            )
            return int(cur.lastrowid)

    def get_item(self, item_id: int) -> Optional[GradeItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT item_id, class_subject_id, name, max_points, weight FROM grade_items WHERE item_id=%s",
                (int(item_id),),
            )
            r = fetchone(cur)
            return _to_item(r) if r else None

    def update_item(self, item_id: int, *, name: str, max_points: float, weight: float) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE grade_items SET name=%s, max_points=%s, weight=%s WHERE item_id=%s",
                (name, max_points, weight, int(item_id)),
            )

    def delete_item(self, item_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM grades WHERE item_id=%s", (int(item_id),))
            cur.execute("DELETE FROM grade_items WHERE item_id=%s", (int(item_id),))
            return cur.rowcount > 0

    def list_items(self, class_subject_id: int) -> Sequence[GradeItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT item_id, class_subject_id, name, max_points, weight
                FROM grade_items
                WHERE class_subject_id=%s
                ORDER BY item_id
                """,
                (int(class_subject_id),),
            )
            return [_to_item(r) for r in fetchall(cur)]

    def highest_points(self, item_id: int) -> Optional[float]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT MAX(points) AS top FROM grades WHERE item_id=%s", (int(item_id),))
            r = fetchone(cur)
            return as_float(r["top"]) if r else None

    # -------- Grades --------
    def get_grade(self, enroll_id: int, item_id: int) -> Optional[Grade]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT grade_id, enroll_id, item_id, points, comment FROM grades WHERE enroll_id=%s AND item_id=%s",
                (int(enroll_id), int(item_id)),
            )
            r = fetchone(cur)
            return _to_grade(r) if r else None

    def insert_grade(self, *, enroll_id: int, item_id: int, points: float, comment: Optional[str]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO grades(enroll_id, item_id, points, comment) VALUES(%s,%s,%s,%s)",
                (int(enroll_id), int(item_id), points, comment),
            )
            return int(cur.lastrowid)

    def update_grade(self, grade_id: int, *, points: float, comment: Optional[str]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE grades SET points=%s, comment=%s WHERE grade_id=%s", (points, comment, int(grade_id)))

    def list_grades(self, class_subject_id: int) -> Sequence[Grade]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT g.grade_id, g.enroll_id, g.item_id, g.points, g.comment
                FROM grades g
                JOIN grade_items gi ON gi.item_id = g.item_id
                WHERE gi.class_subject_id=%s
                ORDER BY g.enroll_id, g.item_id
                """,
                (int(class_subject_id),),
            )
            return [_to_grade(r) for r in fetchall(cur)]

    def list_scores(self, class_subject_id: int) -> Sequence[ScoredItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT g.enroll_id, g.item_id, g.points, gi.max_points, gi.weight
                FROM grades g
                JOIN grade_items gi ON gi.item_id = g.item_id
                WHERE gi.class_subject_id=%s
                """,
                (int(class_subject_id),),
            )
            return [
                ScoredItem(
                    enroll_id=int(r["enroll_id"]),
                    item_id=int(r["item_id"]),
                    points=as_float(r["points"]),
                    max_points=as_float(r["max_points"]),
                    weight=as_float(r.get("weight")),
                )
                for r in fetchall(cur)
            ]
