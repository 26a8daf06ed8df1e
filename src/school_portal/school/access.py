"""Data-scope checks shared by the ledgers.

Role checks go through ``security.guard``; this module answers the narrower
question of *which* classes, assignments and students a caller may touch.
"""
from __future__ import annotations

import logging
from typing import Optional, Set

from ..core.enums import Role
from ..core.exceptions import Unauthorized
from ..security.guard import is_admin, require_role
from ..security.session import RequestContext
from ..users.repository import UserRepository
from .model import ClassSubjectAssignment
from .repository import SchoolRepository

logger = logging.getLogger(__name__)


class SchoolAccess:
    def __init__(self, users: UserRepository, school: SchoolRepository):
        self._users = users
        self._school = school

    def teacher_id(self, ctx: RequestContext) -> Optional[int]:
        if not ctx.is_authenticated or ctx.role != Role.TEACHER:
            return None
        return self._users.teacher_id_for_user(int(ctx.user_id))

    def ensure_teaches(self, ctx: RequestContext, assignment: ClassSubjectAssignment) -> None:
        """Caller must be the assignment's teacher (or an administrator)."""
        require_role(ctx, Role.TEACHER)
        if is_admin(ctx):
            return
        if self.teacher_id(ctx) != assignment.teacher_id:
            logger.info("User %s does not teach assignment %s", ctx.user_id, assignment.class_subject_id)
            raise Unauthorized("You do not teach this class")

    def is_homeroom_teacher(self, ctx: RequestContext, class_id: int) -> bool:
        if is_admin(ctx):
            return True
        teacher_id = self.teacher_id(ctx)
        if teacher_id is None:
            return False
        klass = self._school.get_class(int(class_id))
        return bool(klass and klass.homeroom_teacher_id == teacher_id)

    def visible_student_ids(self, ctx: RequestContext) -> Optional[Set[int]]:
        """Students whose own records the caller may read; ``None`` means all."""
        if is_admin(ctx):
            return None
        if not ctx.is_authenticated:
            return set()
        if ctx.role == Role.STUDENT:
            student_id = self._users.student_id_for_user(int(ctx.user_id))
            return {student_id} if student_id else set()
        if ctx.role == Role.PARENT:
            return set(self._users.student_ids_for_parent_user(int(ctx.user_id)))
        return set()

    def owns_student(self, ctx: RequestContext, student_id: int) -> bool:
        """Student themself or a linked parent; administrators are not owners."""
        if not ctx.is_authenticated or ctx.role not in (Role.STUDENT, Role.PARENT):
            return False
        return int(student_id) in (self.visible_student_ids(ctx) or set())
