from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import optional_int_arg
from ..container import Container
from ..core.exceptions import ValidationError
from ..security.decorators import current_context, login_required


def register(app: Flask, container: Container) -> None:
    @app.route("/dashboard", methods=["GET"], endpoint="dashboard")
    @login_required
    def dashboard():
        ctx = current_context()
        data = container.report_service.dashboard(ctx)
        data["csrf_token"] = ctx.csrf_token
        return jsonify(data)

    @app.route("/reports/attendance", methods=["GET"], endpoint="attendance_report")
    @login_required
    def attendance_report():
        return jsonify(
            container.report_service.attendance_report(current_context(), student_id=optional_int_arg("student_id"))
        )

    @app.route("/reports/grades", methods=["GET"], endpoint="grades_report")
    @login_required
    def grades_report():
        return jsonify(
            container.report_service.grades_report(current_context(), student_id=optional_int_arg("student_id"))
        )

    @app.route("/reports/sessions", methods=["GET"], endpoint="sessions_report")
    @login_required
    def sessions_report():
        raw = (request.args.get("date") or "").strip()
        try:
            day = parse_iso_date(raw) if raw else None
        except ValueError:
            raise ValidationError("date must be YYYY-MM-DD")
        return jsonify(sessions=container.report_service.sessions_report(current_context(), day=day))
