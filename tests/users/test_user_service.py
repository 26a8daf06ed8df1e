from __future__ import annotations

from datetime import date

import pytest

from school_portal.core.enums import Role
from school_portal.core.exceptions import AuthenticationError, RecordNotFound, Unauthorized, ValidationError

from tests.fakes import PASSWORD, SchoolWorld as W


@pytest.fixture
def auth(container):
    return container.auth_service


@pytest.fixture
def users(container):
    return container.user_service


def test_authenticate_returns_session_user(auth):
    user = auth.authenticate(" tina ", PASSWORD)

    assert (user.user_id, user.username, user.role) == (W.TINA_USER, "tina", Role.TEACHER)


@pytest.mark.parametrize("username, password", [("tina", "wrong"), ("nobody", PASSWORD), ("", "")])
def test_authenticate_rejects_bad_credentials(auth, username, password):
    with pytest.raises(AuthenticationError):
        auth.authenticate(username, password)


def test_inactive_account_cannot_log_in(auth, users, admin):
    users.deactivate(admin, user_id=W.TINA_USER)

    with pytest.raises(AuthenticationError):
        auth.authenticate("tina", PASSWORD)


def test_corrupted_hash_is_a_failed_login(auth, world):
    world.users.users[W.BEN_USER] = world.users.users[W.BEN_USER].__class__(
        user_id=W.BEN_USER, username="ben", password_hash="not-a-hash", role=Role.STUDENT
    )

    with pytest.raises(AuthenticationError):
        auth.authenticate("ben", PASSWORD)


def test_admin_creates_a_student_with_profile(users, admin, world):
    user_id = users.create_account(
        admin,
        username="dina",
        password="longenough",
        role=Role.STUDENT,
        first_name="Dina",
        last_name="Petrov",
        dob=date(2012, 1, 1),
        class_code="7A",
    )

    profile = next(s for s in world.users.students.values() if s.user_id == user_id)
    assert profile.full_name == "Dina Petrov"


def test_student_account_needs_profile_fields(users, admin):
    with pytest.raises(ValidationError):
        users.create_account(admin, username="x", password="longenough", role=Role.STUDENT, first_name="X")


def test_short_password_is_rejected(users, admin):
    with pytest.raises(ValidationError):
        users.create_account(admin, username="newbie", password="123", role=Role.TEACHER)


def test_duplicate_username_is_rejected(users, admin):
    with pytest.raises(ValidationError):
        users.create_account(admin, username="tina", password="longenough", role=Role.TEACHER)


def test_only_admin_manages_accounts(users, tina):
    with pytest.raises(Unauthorized):
        users.create_account(tina, username="x", password="longenough", role=Role.TEACHER)
    with pytest.raises(Unauthorized):
        users.list_users(tina)


def test_admin_cannot_deactivate_self(users, admin):
    with pytest.raises(ValidationError):
        users.deactivate(admin, user_id=W.ADMIN_USER)


def test_deactivate_unknown_user(users, admin):
    with pytest.raises(RecordNotFound):
        users.deactivate(admin, user_id=999)


def test_link_guardian(users, admin, world):
    assert users.link_guardian(admin, parent_id=W.PAULA, student_id=W.BEN) is True
    assert users.link_guardian(admin, parent_id=W.PAULA, student_id=W.BEN) is False
    assert world.users.student_ids_for_parent_user(W.PAULA_USER) == [W.SARA, W.BEN]


def test_link_guardian_validates_both_sides(users, admin):
    with pytest.raises(ValidationError):
        users.link_guardian(admin, parent_id=999, student_id=W.BEN)
    with pytest.raises(ValidationError):
        users.link_guardian(admin, parent_id=W.PAULA, student_id=999)


def test_list_users_by_role(users, admin):
    teachers = users.list_users(admin, role=Role.TEACHER)

    assert sorted(u["username"] for u in teachers) == ["omar", "tina"]
