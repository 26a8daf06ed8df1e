from __future__ import annotations

import pytest

from school_portal.grading.calculator.weighted_calculator import WeightedAverageCalculator
from school_portal.grading.model import ScoredItem


def test_weighted_average_is_a_percentage():
    calc = WeightedAverageCalculator()
    scores = [
        ScoredItem(enroll_id=1, item_id=1, points=8, max_points=10, weight=1.0),
        ScoredItem(enroll_id=1, item_id=2, points=15, max_points=30, weight=2.0),
    ]

    # (0.8 * 1 + 0.5 * 2) / 3
    assert calc.student_average(scores) == pytest.approx(60.0)


def test_missing_weight_counts_as_one():
    calc = WeightedAverageCalculator()
    scores = [
        ScoredItem(enroll_id=1, item_id=1, points=10, max_points=10, weight=None),
        ScoredItem(enroll_id=1, item_id=2, points=0, max_points=10, weight=1.0),
    ]

    assert calc.student_average(scores) == pytest.approx(50.0)


def test_no_grades_means_no_average():
    calc = WeightedAverageCalculator()

    assert calc.student_average([]) is None
    assert calc.class_average([]) is None


def test_class_average_is_the_mean_of_student_averages():
    calc = WeightedAverageCalculator()
    scores = [
        # Student 1: a single perfect score.
        ScoredItem(enroll_id=1, item_id=1, points=10, max_points=10, weight=1.0),
        # Student 2: two items, 50% overall.
        ScoredItem(enroll_id=2, item_id=1, points=5, max_points=10, weight=1.0),
        ScoredItem(enroll_id=2, item_id=2, points=10, max_points=20, weight=1.0),
    ]

    assert calc.per_student(scores) == {1: pytest.approx(100.0), 2: pytest.approx(50.0)}
    assert calc.class_average(scores) == pytest.approx(75.0)
