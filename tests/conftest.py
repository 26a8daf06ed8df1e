from __future__ import annotations

from datetime import datetime

import pytest

from school_portal import create_app
from school_portal.container import Container, wire_container
from school_portal.core.enums import Role

from tests.fakes import SchoolWorld, build_world, ctx_for


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 10, 19, 9, 0, 0)


@pytest.fixture
def world() -> SchoolWorld:
    return build_world()


@pytest.fixture
def container(world: SchoolWorld) -> Container:
    return wire_container(
        users_repo=world.users,
        school_repo=world.school,
        attendance_repo=world.attendance,
        grading_repo=world.grading,
        reports_repo=world.reports,
        blobs=world.blobs,
        max_upload_bytes=1024,
    )


@pytest.fixture
def admin():
    return ctx_for(SchoolWorld.ADMIN_USER, Role.ADMIN)


@pytest.fixture
def tina():
    """Homeroom teacher of 7A, teaches Maths in 7A."""
    return ctx_for(SchoolWorld.TINA_USER, Role.TEACHER)


@pytest.fixture
def omar():
    """Homeroom teacher of 8B, teaches Physics in 7A and Maths in 8B."""
    return ctx_for(SchoolWorld.OMAR_USER, Role.TEACHER)


@pytest.fixture
def sara():
    return ctx_for(SchoolWorld.SARA_USER, Role.STUDENT)


@pytest.fixture
def ben():
    return ctx_for(SchoolWorld.BEN_USER, Role.STUDENT)


@pytest.fixture
def paula():
    """Parent of Sara only."""
    return ctx_for(SchoolWorld.PAULA_USER, Role.PARENT)


@pytest.fixture
def app(monkeypatch, tmp_path, container):
    monkeypatch.setenv("APP_ENV", "testing")
    monkeypatch.setenv("AUTO_INIT_DB", "0")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path))
    return create_app(container=container)


@pytest.fixture
def client(app):
    return app.test_client()
