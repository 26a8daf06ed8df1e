from __future__ import annotations

from datetime import date

from flask import Flask, jsonify

from ..common.datetime_utils import parse_iso_date
from ..common.http import int_field, request_data, str_field
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..security.decorators import csrf_protected, current_context, role_required


def _period_date(data) -> date:
    try:
        return parse_iso_date(str_field(data, "period_date").strip())
    except ValueError:
        raise ValidationError("period_date must be YYYY-MM-DD")


def register(app: Flask, container: Container) -> None:
    @app.route("/admin/subjects", methods=["POST"], endpoint="create_subject")
    @role_required(Role.ADMIN)
    @csrf_protected
    def create_subject():
        data = request_data()
        subject_id = container.school_service.create_subject(current_context(), name=str_field(data, "name"))
        return jsonify(subject_id=subject_id), 201

    @app.route("/admin/classes", methods=["POST"], endpoint="create_class")
    @role_required(Role.ADMIN)
    @csrf_protected
    def create_class():
        data = request_data()
        class_id = container.school_service.create_class(
            current_context(),
            class_code=str_field(data, "class_code"),
            title=str_field(data, "title"),
            homeroom_teacher_id=int_field(data, "homeroom_teacher_id"),
        )
        return jsonify(class_id=class_id), 201

    @app.route("/admin/assignments", methods=["POST"], endpoint="create_assignment")
    @role_required(Role.ADMIN)
    @csrf_protected
    def create_assignment():
        data = request_data()
        class_subject_id = container.school_service.create_assignment(
            current_context(),
            class_id=int_field(data, "class_id"),
            subject_id=int_field(data, "subject_id"),
            teacher_id=int_field(data, "teacher_id"),
        )
        return jsonify(class_subject_id=class_subject_id), 201

    @app.route("/admin/enrollments", methods=["POST"], endpoint="enroll_student")
    @role_required(Role.ADMIN)
    @csrf_protected
    def enroll_student():
        data = request_data()
        enroll_id = container.school_service.enroll_student(
            current_context(),
            student_id=int_field(data, "student_id"),
            class_id=int_field(data, "class_id"),
        )
        return jsonify(enroll_id=enroll_id), 201

    @app.route("/assignments", methods=["GET"], endpoint="my_assignments")
    @role_required(Role.TEACHER)
    def my_assignments():
        return jsonify(assignments=list(container.school_service.list_my_assignments(current_context())))

    @app.route("/assignments/<int:class_subject_id>/periods", methods=["POST"], endpoint="add_period")
    @role_required(Role.TEACHER)
    @csrf_protected
    def add_period(class_subject_id: int):
        data = request_data()
        period_id = container.school_service.add_period(
            current_context(),
            class_subject_id=class_subject_id,
            period_date=_period_date(data),
            period_label=str_field(data, "period_label"),
        )
        return jsonify(period_id=period_id), 201

    @app.route("/periods/<int:period_id>", methods=["POST"], endpoint="update_period")
    @role_required(Role.TEACHER)
    @csrf_protected
    def update_period(period_id: int):
        data = request_data()
        container.school_service.update_period(
            current_context(),
            period_id=period_id,
            period_date=_period_date(data),
            period_label=str_field(data, "period_label"),
        )
        return jsonify(period_id=period_id)

    @app.route("/periods/<int:period_id>/delete", methods=["POST"], endpoint="delete_period")
    @role_required(Role.TEACHER)
    @csrf_protected
    def delete_period(period_id: int):
        container.school_service.delete_period(current_context(), period_id=period_id)
        return jsonify(period_id=period_id, deleted=True)
