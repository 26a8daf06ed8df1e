from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class Subject:
    subject_id: int
    name: str


@dataclass(frozen=True)
class HomeroomClass:
    class_id: int
    class_code: str
    title: str
    homeroom_teacher_id: int


@dataclass(frozen=True)
class ClassSubjectAssignment:
    """A subject taught to one homeroom class by one teacher."""

    class_subject_id: int
    class_id: int
    subject_id: int
    teacher_id: int


@dataclass(frozen=True)
class Enrollment:
    enroll_id: int
    student_id: int
    class_id: int


@dataclass(frozen=True)
class Period:
    """One scheduled lesson of an assignment; attendance is taken per period."""

    period_id: int
    class_subject_id: int
    period_date: date
    period_label: str


@dataclass(frozen=True)
class RosterEntry:
    enroll_id: int
    student_id: int
    first_name: str
    last_name: str
