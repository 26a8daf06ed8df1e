from __future__ import annotations

from datetime import date

import pytest

from school_portal.core.enums import Role
from school_portal.grading.calculator.weighted_calculator import WeightedAverageCalculator
from school_portal.reports.service import ReportService
from school_portal.school.access import SchoolAccess

from tests.fakes import InMemoryReports, SchoolWorld as W, ctx_for

MONDAY = date(2026, 10, 19)


@pytest.fixture
def cleo():
    return ctx_for(W.CLEO_USER, Role.STUDENT)


@pytest.fixture
def service(world, fixed_now):
    return ReportService(
        InMemoryReports(world),
        SchoolAccess(world.users, world.school),
        calculator=WeightedAverageCalculator(),
        clock=lambda: fixed_now,
    )


@pytest.fixture
def monday(container, world, tina, omar, cleo):
    """Sara absent in Maths and late in Physics, Ben present in Maths only, Cleo absent and justified."""
    ledger = container.attendance_ledger
    ledger.record_status(tina, enrollment_id=W.SARA_7A, period_id=W.MATHS_7A_MON, status="A")
    ledger.record_status(tina, enrollment_id=W.BEN_7A, period_id=W.MATHS_7A_MON, status="P")
    ledger.record_status(omar, enrollment_id=W.SARA_7A, period_id=W.PHYSICS_7A_MON, status="L")
    att_id = ledger.record_status(omar, enrollment_id=W.CLEO_8B, period_id=W.MATHS_8B_MON, status="A")
    ledger.submit_justification(cleo, attendance_id=att_id, text="Dentist")
    return world


@pytest.fixture
def graded(container, tina):
    """Maths 7A: a graded quiz and a heavier test nobody has written yet."""
    ledger = container.grading_ledger
    quiz = ledger.add_item(tina, class_subject_id=W.MATHS_7A, name="Quiz", max_points=20)
    ledger.add_item(tina, class_subject_id=W.MATHS_7A, name="Test", max_points=10, weight=2)
    ledger.record_grade(tina, enrollment_id=W.SARA_7A, item_id=quiz, points=15)
    ledger.record_grade(tina, enrollment_id=W.BEN_7A, item_id=quiz, points=10)
    return quiz


def test_student_without_attendance_gets_a_zero_summary(service, ben):
    report = service.attendance_report(ben)

    assert len(report["students"]) == 1
    row = report["students"][0]
    assert row["student_id"] == W.BEN
    assert (row["total"], row["absent"], row["rate"]) == (0, 0, 0.0)


def test_student_summary_counts_each_status(service, monday, sara):
    row = service.attendance_report(sara)["students"][0]

    assert (row["total"], row["present"], row["absent"], row["late"]) == (2, 0, 1, 1)
    assert row["needs_justification"] == 1
    assert row["pending"] == 0
    assert row["rate"] == 50.0


def test_teacher_sees_only_records_from_own_subjects(service, monday, tina):
    row = service.attendance_report(tina, student_id=W.SARA)["students"][0]

    # The Physics lateness belongs to Omar's assignment.
    assert (row["total"], row["absent"], row["late"]) == (1, 1, 0)


def test_school_wide_attendance_totals(service, monday, admin):
    report = service.attendance_report(admin)

    by_id = {a["class_subject_id"]: a for a in report["assignments"]}
    assert (by_id[W.MATHS_7A]["present"], by_id[W.MATHS_7A]["absent"]) == (1, 1)
    assert by_id[W.PHYSICS_7A]["late"] == 1
    assert by_id[W.MATHS_8B]["pending"] == 1
    school = report["school"]
    assert (school["total"], school["present"], school["absent"], school["late"]) == (4, 1, 2, 1)
    assert (school["pending"], school["needs_justification"]) == (1, 1)
    assert school["rate"] == 50.0


def test_decisions_move_absences_between_buckets(container, service, monday, omar, admin):
    att_id = next(r.attendance_id for r in monday.attendance.records.values() if r.enroll_id == W.CLEO_8B)
    container.attendance_ledger.decide(omar, attendance_id=att_id, approved=False, reason="Not signed")

    school = service.attendance_report(admin)["school"]
    assert (school["pending"], school["rejected"], school["justified"]) == (0, 1, 0)


def test_sessions_flag_periods_with_missing_records(service, monday, omar):
    sessions = service.sessions_report(omar, day=MONDAY)

    assert [(s["period_id"], s["enrolled"], s["recorded"]) for s in sessions] == [
        (W.MATHS_8B_MON, 1, 1),
        (W.PHYSICS_7A_MON, 2, 1),
    ]
    assert [s["needs_attention"] for s in sessions] == [False, True]


def test_pending_count_is_per_homeroom(service, monday, tina, omar):
    assert service.dashboard(omar)["pending_justifications"] == 1
    assert service.dashboard(tina)["pending_justifications"] == 0


def test_ungraded_items_do_not_drag_averages_down(service, graded, admin, sara):
    by_id = {a["class_subject_id"]: a for a in service.grades_report(admin)["assignments"]}

    assert by_id[W.MATHS_7A]["class_average"] == 62.5
    assert by_id[W.PHYSICS_7A]["class_average"] is None

    subjects = service.grades_report(sara)["students"][0]["subjects"]
    assert [(s["class_subject_id"], s["average"], s["class_average"]) for s in subjects] == [
        (W.MATHS_7A, 75.0, 62.5)
    ]
