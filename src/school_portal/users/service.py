from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_min_length, require_non_empty, require_positive_int
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, RecordNotFound, ValidationError
from ..security.guard import require_role
from ..security.session import RequestContext
from .model import NewStudentProfile
from .repository import UserRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class SessionUser:
    """What we store into the session after login."""

    user_id: int
    username: str
    role: Role


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, username: str, password: str) -> SessionUser:
        user = self._users.get_by_username((username or "").strip())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid username or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes or corrupted values
            ok = False

        if not ok:
            logger.info("Failed login for %s", user.username)
            raise AuthenticationError("Invalid username or password")

        return SessionUser(user_id=user.user_id, username=user.username, role=user.role)


class UserService:
    """Use case: manage accounts (admin)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def create_account(
        self,
        ctx: RequestContext,
        *,
        username: str,
        password: str,
        role: Role,
        first_name: str = "",
        last_name: str = "",
        dob: Optional[date] = None,
        class_code: str = "",
    ) -> int:
        require_role(ctx, Role.ADMIN)

        username = require_non_empty(username, "Username")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        if self._users.get_by_username(username):
            raise ValidationError("Username already exists")

        student = None
        if role == Role.STUDENT:
            if dob is None:
                raise ValidationError("Date of birth is required")
            student = NewStudentProfile(
                first_name=require_non_empty(first_name, "First name"),
                last_name=require_non_empty(last_name, "Last name"),
                dob=dob,
                class_code=require_non_empty(class_code, "Class code"),
            )

        user_id = self._users.create_account(
            username=username,
            password_hash=generate_password_hash(password),
            role=role,
            student=student,
        )
        logger.info("Admin %s created %s account %s", ctx.user_id, role.value, username)
        return user_id

    def deactivate(self, ctx: RequestContext, *, user_id: int) -> None:
        require_role(ctx, Role.ADMIN)
        if int(user_id) == ctx.user_id:
            raise ValidationError("You cannot deactivate your own account")
        if not self._users.set_active(int(user_id), is_active=False):
            raise RecordNotFound("User not found")

    def link_guardian(self, ctx: RequestContext, *, parent_id: int, student_id: int) -> bool:
        """Link a parent to a student. Returns False when the link already existed."""
        require_role(ctx, Role.ADMIN)
        parent_id = require_positive_int(parent_id, "parent_id")
        student_id = require_positive_int(student_id, "student_id")

        if not self._users.parent_exists(parent_id):
            raise ValidationError("Parent not found")
        if not self._users.get_student(student_id):
            raise ValidationError("Student not found")
        return self._users.link_guardian(parent_id=parent_id, student_id=student_id)

    def list_users(self, ctx: RequestContext, *, role: Optional[Role] = None) -> Sequence[dict]:
        require_role(ctx, Role.ADMIN)
        return self._users.list_admin_view(role=role)
