from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class GradeItem:
    item_id: int
    class_subject_id: int
    name: str
    max_points: float
    weight: float = 1.0


@dataclass(frozen=True)
class Grade:
    grade_id: int
    enroll_id: int
    item_id: int
    points: float
    comment: Optional[str] = None


@dataclass(frozen=True)
class ScoredItem:
    """A recorded grade together with the item's scale, ready for averaging."""

    enroll_id: int
    item_id: int
    points: float
    max_points: float
    weight: Optional[float] = None
