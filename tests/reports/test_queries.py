from __future__ import annotations

from datetime import date

import pytest

from school_portal.reports import queries


def test_student_filter_is_bound_as_parameters():
    q = queries.attendance_by_student(student_ids=[3, 1], teacher_id=7)

    assert "s.student_id IN (%s,%s)" in q.sql
    assert "cs.teacher_id=%s" in q.sql
    # The teacher filter sits in the join condition, ahead of the WHERE clause.
    assert q.params == (7, 3, 1)


def test_attendance_by_student_keeps_students_without_records():
    q = queries.attendance_by_student(student_ids=[3], teacher_id=None)

    assert "FROM students s" in q.sql
    assert "LEFT JOIN enrollments e" in q.sql
    assert "COUNT(a.att_id) AS total" in q.sql
    assert q.params == (3,)


def test_unfiltered_query_has_no_params():
    q = queries.attendance_by_assignment(teacher_id=None)

    assert "WHERE 1=1" in q.sql
    assert q.params == ()


def test_hostile_values_never_reach_the_sql_text():
    with pytest.raises(ValueError):
        queries.attendance_by_assignment(teacher_id="1 OR 1=1")


def test_empty_id_list_is_refused():
    with pytest.raises(ValueError):
        queries.student_scores(student_ids=[])


def test_sessions_query_binds_the_date():
    day = date(2026, 10, 19)

    q = queries.sessions_on(day=day, teacher_id=4)

    assert q.params == (day, 4)


def test_assignment_scores_combines_filters():
    q = queries.assignment_scores(teacher_id=2, class_subject_ids=[10, 11])

    assert q.params == (2, 10, 11)


def test_pending_count_per_homeroom():
    assert queries.pending_justifications_count(homeroom_teacher_id=5).params == (5,)
    assert queries.pending_justifications_count(homeroom_teacher_id=None).params == ()
