from __future__ import annotations

from io import BytesIO

from flask import Flask, jsonify, request, send_file

from ..common.http import bool_field, int_field, optional_int_arg, request_data, str_field
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..security.decorators import csrf_protected, current_context, role_required, supplied_csrf_token
from ..security.guard import verify_csrf


def register(app: Flask, container: Container) -> None:
    @app.route("/attendance", methods=["POST"], endpoint="record_attendance")
    @role_required(Role.TEACHER)
    @csrf_protected
    def record_attendance():
        data = request_data()
        att_id = container.attendance_ledger.record_status(
            current_context(),
            enrollment_id=int_field(data, "enrollment_id"),
            period_id=int_field(data, "period_id"),
            status=str_field(data, "status"),
        )
        return jsonify(att_id=att_id)

    @app.route("/periods/<int:period_id>/attendance", methods=["POST"], endpoint="record_attendance_bulk")
    @role_required(Role.TEACHER)
    @csrf_protected
    def record_attendance_bulk(period_id: int):
        data = request_data()
        raw_entries = data.get("entries")
        if not isinstance(raw_entries, list):
            raise ValidationError("entries must be a list")

        entries = []
        for item in raw_entries:
            if not isinstance(item, dict):
                raise ValidationError("Each entry needs enrollment_id and status")
            entries.append((item.get("enrollment_id"), item.get("status")))

        ids = container.attendance_ledger.record_bulk(current_context(), period_id=period_id, entries=entries)
        return jsonify(att_ids=ids)

    @app.route("/periods/<int:period_id>/attendance", methods=["GET"], endpoint="period_attendance")
    @role_required(Role.TEACHER)
    def period_attendance(period_id: int):
        rows = container.attendance_ledger.list_period_attendance(current_context(), period_id=period_id)
        return jsonify(period_id=period_id, students=list(rows))

    @app.route("/attendance/me", methods=["GET"], endpoint="my_attendance")
    @role_required(Role.STUDENT, Role.PARENT)
    def my_attendance():
        records = container.attendance_ledger.list_for_student(
            current_context(), student_id=optional_int_arg("student_id")
        )
        return jsonify(records=list(records))

    @app.route("/justifications/<int:attendance_id>", methods=["POST"], endpoint="submit_justification")
    @role_required(Role.STUDENT, Role.PARENT)
    @csrf_protected
    def submit_justification(attendance_id: int):
        data = request_data()
        upload = request.files.get("document")
        if upload is not None and not upload.filename:
            # Empty file input in a multipart form.
            upload.close()
            upload = None

        container.attendance_ledger.submit_justification(
            current_context(),
            attendance_id=attendance_id,
            text=str_field(data, "justification"),
            document=upload,
        )
        return jsonify(att_id=attendance_id, approval_state="PENDING")

    @app.route("/justifications/<int:attendance_id>/decision", methods=["POST"], endpoint="decide_justification")
    @role_required(Role.TEACHER)
    @csrf_protected
    def decide_justification(attendance_id: int):
        data = request_data()
        approved = bool_field(data, "approved")
        container.attendance_ledger.decide(
            current_context(),
            attendance_id=attendance_id,
            approved=approved,
            reason=str_field(data, "reason"),
        )
        return jsonify(att_id=attendance_id, approval_state="APPROVED" if approved else "REJECTED")

    @app.route("/justifications/pending", methods=["GET"], endpoint="pending_justifications")
    @role_required(Role.TEACHER)
    def pending_justifications():
        return jsonify(justifications=list(container.attendance_ledger.list_pending(current_context())))

    @app.route("/justifications/<int:attendance_id>/document", methods=["GET"], endpoint="download_justification")
    @role_required(Role.TEACHER)
    def download_justification(attendance_id: int):
        ctx = current_context()
        # Download links carry the token in the query string.
        verify_csrf(ctx, supplied_csrf_token())
        doc = container.attendance_ledger.get_justification_document(ctx, attendance_id=attendance_id)
        response = send_file(
            BytesIO(doc.content),
            mimetype=doc.mime_type,
            as_attachment=True,
            download_name=doc.filename,
        )
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Cache-Control"] = "no-store"
        return response
