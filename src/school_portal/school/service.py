from __future__ import annotations

import logging
from datetime import date
from typing import Sequence

from ..attendance.blob_store import BlobStore
from ..common.validators import require_max_length, require_non_empty, require_positive_int
from ..core.constants import MAX_PERIOD_LABEL_LENGTH
from ..core.enums import Role
from ..core.exceptions import DuplicateRecord, RecordNotFound, ValidationError
from ..security.guard import is_admin, require_role
from ..security.session import RequestContext
from ..users.repository import UserRepository
from .access import SchoolAccess
from .model import ClassSubjectAssignment, Period
from .repository import SchoolRepository

logger = logging.getLogger(__name__)


def _period_label(value: str) -> str:
    return require_max_length(require_non_empty(value, "Period label"), "Period label", MAX_PERIOD_LABEL_LENGTH)


class SchoolService:
    """Use case: maintain subjects, classes, assignments, enrollments and periods."""

    def __init__(self, school: SchoolRepository, users: UserRepository, access: SchoolAccess, blobs: BlobStore):
        self._school = school
        self._users = users
        self._access = access
        self._blobs = blobs

    def create_subject(self, ctx: RequestContext, *, name: str) -> int:
        require_role(ctx, Role.ADMIN)
        name = require_non_empty(name, "Subject name")
        try:
            return self._school.create_subject(name=name)
        except DuplicateRecord:
            raise ValidationError("Subject already exists")

    def create_class(self, ctx: RequestContext, *, class_code: str, title: str, homeroom_teacher_id: int) -> int:
        require_role(ctx, Role.ADMIN)
        class_code = require_non_empty(class_code, "Class code")
        title = require_non_empty(title, "Class title")
        homeroom_teacher_id = require_positive_int(homeroom_teacher_id, "homeroom_teacher_id")
        if not self._school.teacher_exists(homeroom_teacher_id):
            raise ValidationError("Homeroom teacher not found")
        try:
            return self._school.create_class(class_code=class_code, title=title, homeroom_teacher_id=homeroom_teacher_id)
        except DuplicateRecord:
            raise ValidationError("Class code already exists")

    def create_assignment(self, ctx: RequestContext, *, class_id: int, subject_id: int, teacher_id: int) -> int:
        require_role(ctx, Role.ADMIN)
        if not self._school.get_class(require_positive_int(class_id, "class_id")):
            raise ValidationError("Class not found")
        if not self._school.subject_exists(require_positive_int(subject_id, "subject_id")):
            raise ValidationError("Subject not found")
        if not self._school.teacher_exists(require_positive_int(teacher_id, "teacher_id")):
            raise ValidationError("Teacher not found")
        try:
            return self._school.create_assignment(class_id=int(class_id), subject_id=int(subject_id), teacher_id=int(teacher_id))
        except DuplicateRecord:
            raise ValidationError("This subject is already assigned to the class")

    def enroll_student(self, ctx: RequestContext, *, student_id: int, class_id: int) -> int:
        require_role(ctx, Role.ADMIN)
        if not self._users.get_student(require_positive_int(student_id, "student_id")):
            raise ValidationError("Student not found")
        if not self._school.get_class(require_positive_int(class_id, "class_id")):
            raise ValidationError("Class not found")
        try:
            return self._school.enroll(student_id=int(student_id), class_id=int(class_id))
        except DuplicateRecord:
            raise ValidationError("Student is already enrolled in this class")

    def add_period(self, ctx: RequestContext, *, class_subject_id: int, period_date: date, period_label: str) -> int:
        assignment = self._school.get_assignment(int(class_subject_id))
        if not assignment:
            raise RecordNotFound("Assignment not found")
        self._access.ensure_teaches(ctx, assignment)
        label = _period_label(period_label)
        period_id = self._school.create_period(
            class_subject_id=assignment.class_subject_id,
            period_date=period_date,
            period_label=label,
        )
        logger.info("Period %s added to assignment %s by user %s", period_id, assignment.class_subject_id, ctx.user_id)
        return period_id

    def _period_for_teacher(self, ctx: RequestContext, period_id: int) -> tuple[Period, ClassSubjectAssignment]:
        period = self._school.get_period(int(period_id))
        assignment = self._school.get_assignment(period.class_subject_id) if period else None
        if not period or not assignment:
            raise RecordNotFound("Period not found")
        self._access.ensure_teaches(ctx, assignment)
        return period, assignment

    def update_period(self, ctx: RequestContext, *, period_id: int, period_date: date, period_label: str) -> None:
        period, _ = self._period_for_teacher(ctx, period_id)
        self._school.update_period(period.period_id, period_date=period_date, period_label=_period_label(period_label))
        logger.info("Period %s updated by user %s", period.period_id, ctx.user_id)

    def delete_period(self, ctx: RequestContext, *, period_id: int) -> None:
        """Remove the period together with the attendance taken in it."""
        period, _ = self._period_for_teacher(ctx, period_id)
        documents = self._school.delete_period(period.period_id)
        for reference in documents:
            self._blobs.delete(reference)
        logger.info(
            "Period %s deleted by user %s (%d justification documents removed)",
            period.period_id,
            ctx.user_id,
            len(documents),
        )

    def list_my_assignments(self, ctx: RequestContext) -> Sequence[dict]:
        require_role(ctx, Role.TEACHER)
        if is_admin(ctx):
            return self._school.list_assignments_for_teacher(None)
        teacher_id = self._access.teacher_id(ctx)
        if teacher_id is None:
            return []
        return self._school.list_assignments_for_teacher(teacher_id)
