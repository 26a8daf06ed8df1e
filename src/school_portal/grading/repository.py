from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Grade, GradeItem, ScoredItem


class GradingRepository(Protocol):
    # Grade items
    def create_item(self, *, class_subject_id: int, name: str, max_points: float, weight: float) -> int:
        raise NotImplementedError

    def get_item(self, item_id: int) -> Optional[GradeItem]:
        raise NotImplementedError

    def update_item(self, item_id: int, *, name: str, max_points: float, weight: float) -> None:
        raise NotImplementedError

    def delete_item(self, item_id: int) -> bool:
        """Delete the item and every grade recorded against it."""

        raise NotImplementedError

    def list_items(self, class_subject_id: int) -> Sequence[GradeItem]:
        raise NotImplementedError

    def highest_points(self, item_id: int) -> Optional[float]:
        raise NotImplementedError

    # Grades
    def get_grade(self, enroll_id: int, item_id: int) -> Optional[Grade]:
        raise NotImplementedError

    def insert_grade(self, *, enroll_id: int, item_id: int, points: float, comment: Optional[str]) -> int:
        """Raises DuplicateRecord when (enroll_id, item_id) already exists."""

        raise NotImplementedError

    def update_grade(self, grade_id: int, *, points: float, comment: Optional[str]) -> None:
        raise NotImplementedError

    def list_grades(self, class_subject_id: int) -> Sequence[Grade]:
        raise NotImplementedError

    def list_scores(self, class_subject_id: int) -> Sequence[ScoredItem]:
        raise NotImplementedError
