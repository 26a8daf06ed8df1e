from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Optional, Sequence

from ..common.validators import require_finite_number, require_max_length, require_non_empty, require_positive_int
from ..core.constants import DEFAULT_GRADE_WEIGHT, MAX_ITEM_NAME_LENGTH, MAX_ITEM_POINTS, MAX_ITEM_WEIGHT
from ..core.exceptions import DuplicateRecord, OutOfRange, RecordNotFound, ValidationError
from ..school.access import SchoolAccess
from ..school.model import ClassSubjectAssignment
from ..school.repository import SchoolRepository
from ..security.session import RequestContext
from .calculator.base import AverageCalculator
from .model import GradeItem
from .repository import GradingRepository

logger = logging.getLogger(__name__)


class GradingLedger:
    """Use case: grade items, grades and weighted averages for an assignment."""

    def __init__(
        self,
        grading: GradingRepository,
        school: SchoolRepository,
        access: SchoolAccess,
        *,
        calculator: AverageCalculator,
    ):
        self._grading = grading
        self._school = school
        self._access = access
        self._calculator = calculator

    def _assignment_for_teacher(self, ctx: RequestContext, class_subject_id: int) -> ClassSubjectAssignment:
        assignment = self._school.get_assignment(int(class_subject_id))
        if not assignment:
            raise RecordNotFound("Assignment not found")
        self._access.ensure_teaches(ctx, assignment)
        return assignment

    def _item_for_teacher(self, ctx: RequestContext, item_id: int) -> tuple[GradeItem, ClassSubjectAssignment]:
        item = self._grading.get_item(int(item_id))
        if not item:
            raise RecordNotFound("Grade item not found")
        return item, self._assignment_for_teacher(ctx, item.class_subject_id)

    @staticmethod
    def _validate_item(name: str, max_points: Any, weight: Any) -> tuple[str, float, float]:
        name = require_max_length(require_non_empty(name, "Name"), "Name", MAX_ITEM_NAME_LENGTH)
        max_points = require_finite_number(max_points, "max_points")
        if not 0 < max_points <= MAX_ITEM_POINTS:
            raise OutOfRange(f"Max points must be greater than 0 and at most {MAX_ITEM_POINTS:g}", field="max_points")
        weight = DEFAULT_GRADE_WEIGHT if weight in (None, "") else require_finite_number(weight, "weight")
        if not 0 < weight <= MAX_ITEM_WEIGHT:
            raise OutOfRange(f"Weight must be greater than 0 and at most {MAX_ITEM_WEIGHT:g}", field="weight")
        return name, max_points, weight

    # -------- Grade items --------
    def add_item(
        self,
        ctx: RequestContext,
        *,
        class_subject_id: int,
        name: str,
        max_points: Any,
        weight: Any = None,
    ) -> int:
        assignment = self._assignment_for_teacher(ctx, class_subject_id)
        name, max_points, weight = self._validate_item(name, max_points, weight)
        return self._grading.create_item(
            class_subject_id=assignment.class_subject_id,
            name=name,
            max_points=max_points,
            weight=weight,
        )

    def update_item(self, ctx: RequestContext, *, item_id: int, name: str, max_points: Any, weight: Any = None) -> None:
        item, _ = self._item_for_teacher(ctx, item_id)
        name, max_points, weight = self._validate_item(name, max_points, weight)

        highest = self._grading.highest_points(item.item_id)
        if highest is not None and highest > max_points:
            raise OutOfRange(f"Existing grades go up to {highest:g} points", field="max_points")

        self._grading.update_item(item.item_id, name=name, max_points=max_points, weight=weight)

    def delete_item(self, ctx: RequestContext, *, item_id: int) -> None:
        item, _ = self._item_for_teacher(ctx, item_id)
        if not self._grading.delete_item(item.item_id):
            raise RecordNotFound("Grade item not found")
        logger.info("User %s deleted grade item %s and its grades", ctx.user_id, item.item_id)

    def list_items(self, ctx: RequestContext, *, class_subject_id: int) -> Sequence[GradeItem]:
        assignment = self._assignment_for_teacher(ctx, class_subject_id)
        return self._grading.list_items(assignment.class_subject_id)

    # -------- Grades --------
    def record_grade(
        self,
        ctx: RequestContext,
        *,
        enrollment_id: int,
        item_id: int,
        points: Any,
        comment: Optional[str] = None,
    ) -> int:
        item, assignment = self._item_for_teacher(ctx, item_id)

        enrollment = self._school.get_enrollment(require_positive_int(enrollment_id, "enrollment_id"))
        if not enrollment or enrollment.class_id != assignment.class_id:
            raise ValidationError("Student is not enrolled in this class")

        points = require_finite_number(points, "points")
        if points < 0 or points > item.max_points:
            raise OutOfRange(f"Points must be between 0 and {item.max_points:g}", field="points")
        comment = (comment or "").strip() or None

        existing = self._grading.get_grade(enrollment.enroll_id, item.item_id)
        if existing is None:
            try:
                return self._grading.insert_grade(
                    enroll_id=enrollment.enroll_id, item_id=item.item_id, points=points, comment=comment
                )
            except DuplicateRecord:
                existing = self._grading.get_grade(enrollment.enroll_id, item.item_id)
                if existing is None:
                    raise

        self._grading.update_grade(existing.grade_id, points=points, comment=comment)
        return existing.grade_id

    # -------- Averages --------
    def class_average(self, class_subject_id: int) -> Optional[float]:
        """Percentage average of the assignment, or None when nobody has a grade."""
        return self._calculator.class_average(self._grading.list_scores(int(class_subject_id)))

    def assignment_average(self, ctx: RequestContext, *, class_subject_id: int) -> Optional[float]:
        assignment = self._assignment_for_teacher(ctx, class_subject_id)
        return self.class_average(assignment.class_subject_id)

    def gradebook(self, ctx: RequestContext, *, class_subject_id: int) -> dict:
        """Items, every enrolled student's grades and averages for one assignment.

        Students without any grade are listed with an empty ``grades`` list and a
        ``None`` average; they do not count towards the class average.
        """
        assignment = self._assignment_for_teacher(ctx, class_subject_id)
        items = self._grading.list_items(assignment.class_subject_id)
        scores = self._grading.list_scores(assignment.class_subject_id)
        averages = self._calculator.per_student(scores)

        by_enrollment: dict[int, list[dict]] = {}
        for grade in self._grading.list_grades(assignment.class_subject_id):
            by_enrollment.setdefault(grade.enroll_id, []).append(
                {"item_id": grade.item_id, "points": grade.points, "comment": grade.comment}
            )

        students = [
            {
                "enroll_id": entry.enroll_id,
                "student_id": entry.student_id,
                "first_name": entry.first_name,
                "last_name": entry.last_name,
                "grades": by_enrollment.get(entry.enroll_id, []),
                "average": averages.get(entry.enroll_id),
            }
            for entry in self._school.list_roster(assignment.class_id)
        ]
        return {
            "class_subject_id": assignment.class_subject_id,
            "items": [asdict(i) for i in items],
            "students": students,
            "class_average": self._calculator.class_average(scores),
        }
