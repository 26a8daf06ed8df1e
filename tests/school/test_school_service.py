from __future__ import annotations

from datetime import date

import pytest

from school_portal.core.enums import AttendanceStatus
from school_portal.core.exceptions import RecordNotFound, Unauthorized, ValidationError

from tests.fakes import FakeUpload, SchoolWorld as W


@pytest.fixture
def school(container):
    return container.school_service


def test_admin_builds_a_class_with_an_assignment(school, admin, world):
    subject_id = school.create_subject(admin, name="Chemistry")
    class_id = school.create_class(admin, class_code="9C", title="Ninth C", homeroom_teacher_id=W.TINA_TEACHER)
    cs_id = school.create_assignment(admin, class_id=class_id, subject_id=subject_id, teacher_id=W.OMAR_TEACHER)
    enroll_id = school.enroll_student(admin, student_id=W.CLEO, class_id=class_id)

    assert world.school.assignments[cs_id].teacher_id == W.OMAR_TEACHER
    assert world.school.enrollments[enroll_id].class_id == class_id


def test_duplicates_become_validation_errors(school, admin):
    with pytest.raises(ValidationError):
        school.create_subject(admin, name="Maths")
    with pytest.raises(ValidationError):
        school.create_class(admin, class_code="7A", title="Again", homeroom_teacher_id=W.TINA_TEACHER)
    with pytest.raises(ValidationError):
        school.create_assignment(admin, class_id=W.CLASS_7A, subject_id=W.MATHS, teacher_id=W.OMAR_TEACHER)
    with pytest.raises(ValidationError):
        school.enroll_student(admin, student_id=W.SARA, class_id=W.CLASS_7A)


def test_references_must_exist(school, admin):
    with pytest.raises(ValidationError):
        school.create_class(admin, class_code="9Z", title="Nobody", homeroom_teacher_id=999)
    with pytest.raises(ValidationError):
        school.create_assignment(admin, class_id=W.CLASS_8B, subject_id=999, teacher_id=W.TINA_TEACHER)
    with pytest.raises(ValidationError):
        school.enroll_student(admin, student_id=999, class_id=W.CLASS_8B)


def test_teachers_cannot_change_the_structure(school, tina):
    with pytest.raises(Unauthorized):
        school.create_subject(tina, name="Art")


def test_teacher_adds_period_to_own_assignment(school, tina, world):
    period_id = school.add_period(tina, class_subject_id=W.MATHS_7A, period_date=date(2026, 10, 20), period_label="3")

    assert world.school.periods[period_id].class_subject_id == W.MATHS_7A


def test_teacher_cannot_add_period_elsewhere(school, tina):
    with pytest.raises(Unauthorized):
        school.add_period(tina, class_subject_id=W.PHYSICS_7A, period_date=date(2026, 10, 20), period_label="3")
    with pytest.raises(RecordNotFound):
        school.add_period(tina, class_subject_id=999, period_date=date(2026, 10, 20), period_label="3")


def test_list_my_assignments(school, omar, admin, sara):
    assert sorted(a["class_subject_id"] for a in school.list_my_assignments(omar)) == [W.PHYSICS_7A, W.MATHS_8B]
    assert len(school.list_my_assignments(admin)) == 3
    with pytest.raises(Unauthorized):
        school.list_my_assignments(sara)


def test_period_label_has_a_length_limit(school, tina):
    with pytest.raises(ValidationError):
        school.add_period(tina, class_subject_id=W.MATHS_7A, period_date=date(2026, 10, 20), period_label="x" * 51)


def test_teacher_moves_own_period(school, tina, world):
    school.update_period(tina, period_id=W.MATHS_7A_MON, period_date=date(2026, 10, 21), period_label=" 4 ")

    period = world.school.periods[W.MATHS_7A_MON]
    assert (period.period_date, period.period_label) == (date(2026, 10, 21), "4")


def test_period_changes_are_limited_to_own_periods(school, tina):
    with pytest.raises(Unauthorized):
        school.update_period(tina, period_id=W.PHYSICS_7A_MON, period_date=date(2026, 10, 21), period_label="4")
    with pytest.raises(Unauthorized):
        school.delete_period(tina, period_id=W.PHYSICS_7A_MON)
    with pytest.raises(RecordNotFound):
        school.delete_period(tina, period_id=999)


def test_deleting_a_period_removes_its_attendance_and_documents(container, school, tina, sara, world):
    ledger = container.attendance_ledger
    absent = ledger.record_status(tina, enrollment_id=W.SARA_7A, period_id=W.MATHS_7A_MON, status="A")
    ledger.record_status(tina, enrollment_id=W.BEN_7A, period_id=W.MATHS_7A_MON, status="P")
    ledger.submit_justification(sara, attendance_id=absent, text="Sick", document=FakeUpload("n.pdf", b"%PDF"))

    school.delete_period(tina, period_id=W.MATHS_7A_MON)

    assert W.MATHS_7A_MON not in world.school.periods
    assert not [r for r in world.attendance.records.values() if r.period_id == W.MATHS_7A_MON]
    assert world.blobs.blobs == {}


def test_deleting_a_period_keeps_other_periods(container, school, tina, omar, world):
    container.attendance_ledger.record_status(omar, enrollment_id=W.SARA_7A, period_id=W.PHYSICS_7A_MON, status="L")

    school.delete_period(tina, period_id=W.MATHS_7A_MON)

    assert [r.status for r in world.attendance.records.values()] == [AttendanceStatus.LATE]
    assert W.PHYSICS_7A_MON in world.school.periods
