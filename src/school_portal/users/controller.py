from __future__ import annotations

from flask import Flask, jsonify, redirect, request, url_for

from ..common.datetime_utils import parse_iso_date
from ..common.http import int_field, request_data, str_field
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..security.decorators import (
    csrf_protected,
    current_context,
    login_required,
    role_required,
    safe_next,
    session_store,
)


def _parse_role(value: str) -> Role:
    try:
        return Role((value or "").strip().lower())
    except ValueError:
        raise ValidationError("Role must be one of admin, teacher, student, parent")


def register(app: Flask, container: Container) -> None:
    @app.route("/login", methods=["GET", "POST"], endpoint="login")
    @csrf_protected
    def login():
        store = session_store()
        if request.method == "GET":
            ctx = current_context()
            return jsonify(
                authenticated=ctx.is_authenticated,
                csrf_token=store.csrf_token(),
                next=safe_next(request.args.get("next")),
                error=request.args.get("error"),
            )

        data = request_data()
        s_user = container.auth_service.authenticate(str_field(data, "username"), str_field(data, "password"))
        store.login(user_id=s_user.user_id, username=s_user.username, role=s_user.role)

        target = (
            safe_next(store.pop_redirect_after_login())
            or safe_next(request.args.get("next"))
            or url_for("dashboard")
        )
        return redirect(target)

    @app.route("/logout", methods=["POST"], endpoint="logout")
    @login_required
    @csrf_protected
    def logout():
        session_store().destroy()
        return redirect(url_for("login"))

    @app.route("/error", methods=["GET"], endpoint="error_page")
    def error_page():
        return jsonify(error="You do not have permission to view this page"), 403

    @app.route("/admin/users", methods=["GET", "POST"], endpoint="admin_users")
    @role_required(Role.ADMIN)
    @csrf_protected
    def admin_users():
        ctx = current_context()
        if request.method == "GET":
            role_arg = request.args.get("role")
            role = _parse_role(role_arg) if role_arg else None
            return jsonify(users=list(container.user_service.list_users(ctx, role=role)))

        data = request_data()
        dob_raw = str_field(data, "dob").strip()
        try:
            dob = parse_iso_date(dob_raw) if dob_raw else None
        except ValueError:
            raise ValidationError("Date of birth must be YYYY-MM-DD")

        user_id = container.user_service.create_account(
            ctx,
            username=str_field(data, "username"),
            password=str_field(data, "password"),
            role=_parse_role(str_field(data, "role")),
            first_name=str_field(data, "first_name"),
            last_name=str_field(data, "last_name"),
            dob=dob,
            class_code=str_field(data, "class_code"),
        )
        return jsonify(user_id=user_id), 201

    @app.route("/admin/users/<int:user_id>/deactivate", methods=["POST"], endpoint="deactivate_user")
    @role_required(Role.ADMIN)
    @csrf_protected
    def deactivate_user(user_id: int):
        container.user_service.deactivate(current_context(), user_id=user_id)
        return jsonify(user_id=user_id, is_active=False)

    @app.route("/admin/guardians", methods=["POST"], endpoint="link_guardian")
    @role_required(Role.ADMIN)
    @csrf_protected
    def link_guardian():
        data = request_data()
        created = container.user_service.link_guardian(
            current_context(),
            parent_id=int_field(data, "parent_id"),
            student_id=int_field(data, "student_id"),
        )
        return jsonify(linked=True, created=created), (201 if created else 200)
