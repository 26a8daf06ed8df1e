from __future__ import annotations

import pytest

from school_portal.core.exceptions import OutOfRange, RecordNotFound, Unauthorized, ValidationError

from tests.fakes import SchoolWorld as W


@pytest.fixture
def ledger(container):
    return container.grading_ledger


@pytest.fixture
def quiz(ledger, tina):
    return ledger.add_item(tina, class_subject_id=W.MATHS_7A, name="Quiz 1", max_points=20)


def test_add_item_defaults_weight(ledger, tina, world, quiz):
    item = world.grading.items[quiz]

    assert (item.name, item.max_points, item.weight) == ("Quiz 1", 20.0, 1.0)
    assert [i.item_id for i in ledger.list_items(tina, class_subject_id=W.MATHS_7A)] == [quiz]


@pytest.mark.parametrize(
    "max_points, weight, field",
    [
        (0, 1, "max_points"),
        (-5, 1, "max_points"),
        (1000, 1, "max_points"),
        ("nan", 1, "max_points"),
        ("inf", 1, "max_points"),
        (10, 0, "weight"),
        (10, -1, "weight"),
        (10, 10, "weight"),
        (10, "nan", "weight"),
        (10, "inf", "weight"),
    ],
)
def test_item_bounds(ledger, tina, max_points, weight, field):
    with pytest.raises(OutOfRange) as exc:
        ledger.add_item(tina, class_subject_id=W.MATHS_7A, name="Test", max_points=max_points, weight=weight)

    assert exc.value.field == field


def test_item_needs_a_name(ledger, tina):
    with pytest.raises(ValidationError):
        ledger.add_item(tina, class_subject_id=W.MATHS_7A, name=" ", max_points=10)


def test_item_limits_match_the_columns(ledger, tina, world):
    item_id = ledger.add_item(tina, class_subject_id=W.MATHS_7A, name="N" * 100, max_points=999.99, weight=9.99)

    assert (world.grading.items[item_id].max_points, world.grading.items[item_id].weight) == (999.99, 9.99)
    with pytest.raises(ValidationError):
        ledger.add_item(tina, class_subject_id=W.MATHS_7A, name="N" * 101, max_points=10)


def test_only_the_assigned_teacher_manages_items(ledger, omar, quiz):
    with pytest.raises(Unauthorized):
        ledger.add_item(omar, class_subject_id=W.MATHS_7A, name="Sneaky", max_points=10)
    with pytest.raises(Unauthorized):
        ledger.delete_item(omar, item_id=quiz)


def test_students_cannot_manage_items(ledger, sara):
    with pytest.raises(Unauthorized):
        ledger.list_items(sara, class_subject_id=W.MATHS_7A)


def test_record_grade_then_update_it(ledger, tina, world, quiz):
    first = ledger.record_grade(tina, enrollment_id=W.SARA_7A, item_id=quiz, points=12, comment="  ")
    second = ledger.record_grade(tina, enrollment_id=W.SARA_7A, item_id=quiz, points=18, comment="Better")

    assert first == second
    grade = world.grading.grades[first]
    assert (grade.points, grade.comment) == (18.0, "Better")


def test_concurrent_grade_insert_falls_back_to_update(ledger, tina, world, quiz):
    world.grading.race_next_insert = True

    grade_id = ledger.record_grade(tina, enrollment_id=W.SARA_7A, item_id=quiz, points=11)

    assert len(world.grading.grades) == 1
    assert world.grading.grades[grade_id].points == 11.0


@pytest.mark.parametrize("points", [-1, 20.01, 20.5, "nan", "inf", "-inf", "abc"])
def test_points_must_be_within_item_range(ledger, tina, world, quiz, points):
    with pytest.raises(ValidationError) as exc:
        ledger.record_grade(tina, enrollment_id=W.SARA_7A, item_id=quiz, points=points)

    if points != "abc":
        assert isinstance(exc.value, OutOfRange)
        assert exc.value.field == "points"
    assert world.grading.grades == {}


def test_boundary_points_are_accepted(ledger, tina, quiz):
    ledger.record_grade(tina, enrollment_id=W.SARA_7A, item_id=quiz, points=0)
    ledger.record_grade(tina, enrollment_id=W.BEN_7A, item_id=quiz, points=20)


def test_grade_for_student_of_another_class_is_rejected(ledger, tina, world, quiz):
    with pytest.raises(ValidationError):
        ledger.record_grade(tina, enrollment_id=W.CLEO_8B, item_id=quiz, points=10)

    assert world.grading.grades == {}


def test_unknown_item_is_not_found(ledger, tina):
    with pytest.raises(RecordNotFound):
        ledger.record_grade(tina, enrollment_id=W.SARA_7A, item_id=999, points=1)


def test_max_points_cannot_drop_below_recorded_grade(ledger, tina, world, quiz):
    ledger.record_grade(tina, enrollment_id=W.SARA_7A, item_id=quiz, points=15)

    with pytest.raises(OutOfRange) as exc:
        ledger.update_item(tina, item_id=quiz, name="Quiz 1", max_points=10)

    assert exc.value.field == "max_points"
    assert world.grading.items[quiz].max_points == 20

    ledger.update_item(tina, item_id=quiz, name="Quiz one", max_points=15, weight=2)
    assert world.grading.items[quiz].weight == 2.0


def test_delete_item_removes_its_grades(ledger, tina, world, quiz):
    ledger.record_grade(tina, enrollment_id=W.SARA_7A, item_id=quiz, points=15)

    ledger.delete_item(tina, item_id=quiz)

    assert world.grading.items == {}
    assert world.grading.grades == {}


def test_assignment_average(ledger, tina, quiz):
    exam = ledger.add_item(tina, class_subject_id=W.MATHS_7A, name="Exam", max_points=50, weight=3)
    ledger.record_grade(tina, enrollment_id=W.SARA_7A, item_id=quiz, points=20)
    ledger.record_grade(tina, enrollment_id=W.SARA_7A, item_id=exam, points=25)
    ledger.record_grade(tina, enrollment_id=W.BEN_7A, item_id=quiz, points=10)

    # Sara: (1.0 * 1 + 0.5 * 3) / 4 = 62.5; Ben: only the quiz, 50.
    assert ledger.assignment_average(tina, class_subject_id=W.MATHS_7A) == pytest.approx(56.25)


def test_average_without_grades_is_none(ledger, tina, quiz):
    assert ledger.assignment_average(tina, class_subject_id=W.MATHS_7A) is None


def test_gradebook_lists_every_student_with_grades_and_averages(ledger, tina, quiz):
    exam = ledger.add_item(tina, class_subject_id=W.MATHS_7A, name="Exam", max_points=50, weight=3)
    ledger.record_grade(tina, enrollment_id=W.SARA_7A, item_id=quiz, points=20, comment="Top")
    ledger.record_grade(tina, enrollment_id=W.SARA_7A, item_id=exam, points=25)

    book = ledger.gradebook(tina, class_subject_id=W.MATHS_7A)

    assert [i["item_id"] for i in book["items"]] == [quiz, exam]
    ben, sara = book["students"]
    assert (ben["last_name"], ben["grades"], ben["average"]) == ("Kos", [], None)
    assert sara["enroll_id"] == W.SARA_7A
    assert sara["grades"] == [
        {"item_id": quiz, "points": 20.0, "comment": "Top"},
        {"item_id": exam, "points": 25.0, "comment": None},
    ]
    assert sara["average"] == pytest.approx(62.5)
    assert book["class_average"] == pytest.approx(62.5)


def test_gradebook_is_limited_to_own_assignments(ledger, tina, sara):
    with pytest.raises(Unauthorized):
        ledger.gradebook(tina, class_subject_id=W.PHYSICS_7A)
    with pytest.raises(Unauthorized):
        ledger.gradebook(sara, class_subject_id=W.MATHS_7A)
    with pytest.raises(RecordNotFound):
        ledger.gradebook(tina, class_subject_id=999)
