from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import NewStudentProfile, StudentProfile, User


class UserRepository(Protocol):
    """Accounts plus the role profiles that belong to them."""

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def create_account(
        self,
        *,
        username: str,
        password_hash: str,
        role: Role,
        student: Optional[NewStudentProfile] = None,
    ) -> int:
        """Insert the user and its role profile in one transaction; return user_id."""

        raise NotImplementedError

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def list_admin_view(self, *, role: Optional[Role] = None) -> Sequence[dict]:
        raise NotImplementedError

    # Profile lookups
    def teacher_id_for_user(self, user_id: int) -> Optional[int]:
        raise NotImplementedError

    def student_id_for_user(self, user_id: int) -> Optional[int]:
        raise NotImplementedError

    def parent_id_for_user(self, user_id: int) -> Optional[int]:
        raise NotImplementedError

    def student_ids_for_parent_user(self, user_id: int) -> Sequence[int]:
        raise NotImplementedError

    def get_student(self, student_id: int) -> Optional[StudentProfile]:
        raise NotImplementedError

    def parent_exists(self, parent_id: int) -> bool:
        raise NotImplementedError

    def link_guardian(self, *, parent_id: int, student_id: int) -> bool:
        raise NotImplementedError
