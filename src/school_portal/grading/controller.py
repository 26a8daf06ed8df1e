from __future__ import annotations

from dataclasses import asdict

from flask import Flask, jsonify, request

from ..common.http import int_field, request_data, str_field
from ..container import Container
from ..core.enums import Role
from ..security.decorators import csrf_protected, current_context, role_required


def register(app: Flask, container: Container) -> None:
    @app.route("/assignments/<int:class_subject_id>/grade-items", methods=["GET", "POST"], endpoint="grade_items")
    @role_required(Role.TEACHER)
    @csrf_protected
    def grade_items(class_subject_id: int):
        ctx = current_context()
        if request.method == "GET":
            items = container.grading_ledger.list_items(ctx, class_subject_id=class_subject_id)
            return jsonify(items=[asdict(i) for i in items])

        data = request_data()
        item_id = container.grading_ledger.add_item(
            ctx,
            class_subject_id=class_subject_id,
            name=str_field(data, "name"),
            max_points=data.get("max_points"),
            weight=data.get("weight"),
        )
        return jsonify(item_id=item_id), 201

    @app.route("/grade-items/<int:item_id>", methods=["POST"], endpoint="update_grade_item")
    @role_required(Role.TEACHER)
    @csrf_protected
    def update_grade_item(item_id: int):
        data = request_data()
        container.grading_ledger.update_item(
            current_context(),
            item_id=item_id,
            name=str_field(data, "name"),
            max_points=data.get("max_points"),
            weight=data.get("weight"),
        )
        return jsonify(item_id=item_id)

    @app.route("/grade-items/<int:item_id>/delete", methods=["POST"], endpoint="delete_grade_item")
    @role_required(Role.TEACHER)
    @csrf_protected
    def delete_grade_item(item_id: int):
        container.grading_ledger.delete_item(current_context(), item_id=item_id)
        return jsonify(item_id=item_id, deleted=True)

    @app.route("/grades", methods=["POST"], endpoint="record_grade")
    @role_required(Role.TEACHER)
    @csrf_protected
    def record_grade():
        data = request_data()
        grade_id = container.grading_ledger.record_grade(
            current_context(),
            enrollment_id=int_field(data, "enrollment_id"),
            item_id=int_field(data, "item_id"),
            points=data.get("points"),
            comment=str_field(data, "comment"),
        )
        return jsonify(grade_id=grade_id)

    @app.route("/assignments/<int:class_subject_id>/average", methods=["GET"], endpoint="assignment_average")
    @role_required(Role.TEACHER)
    def assignment_average(class_subject_id: int):
        average = container.grading_ledger.assignment_average(current_context(), class_subject_id=class_subject_id)
        return jsonify(class_subject_id=class_subject_id, average=(round(average, 2) if average is not None else None))

    @app.route("/assignments/<int:class_subject_id>/grades", methods=["GET"], endpoint="gradebook")
    @role_required(Role.TEACHER)
    def gradebook(class_subject_id: int):
        return jsonify(container.grading_ledger.gradebook(current_context(), class_subject_id=class_subject_id))
