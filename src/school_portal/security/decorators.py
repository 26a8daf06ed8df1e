"""Flask glue for the session store and the authorization guard."""
from __future__ import annotations

import logging
from functools import wraps
from typing import Optional
from urllib.parse import urlparse

from flask import Flask, g, jsonify, redirect, request, session, url_for

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    DuplicateRecord,
    OutOfRange,
    RecordNotFound,
    SecurityTokenMismatch,
    StorageUnavailable,
    Unauthenticated,
    Unauthorized,
    ValidationError,
)
from .guard import require_any_role, require_authenticated, require_role, verify_csrf
from .session import RequestContext, SessionStore

logger = logging.getLogger(__name__)

_MUTATING_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


def session_store() -> SessionStore:
    store = g.get("session_store")
    if store is None:
        store = SessionStore(session)
        g.session_store = store
    return store


def current_context() -> RequestContext:
    ctx = g.get("request_context")
    return ctx if ctx is not None else RequestContext.anonymous()


def supplied_csrf_token() -> Optional[str]:
    token = request.form.get("csrf_token") or request.args.get("csrf_token")
    if token:
        return token
    body = request.get_json(silent=True)
    if isinstance(body, dict) and body.get("csrf_token"):
        return str(body["csrf_token"])
    return request.headers.get("X-CSRF-Token")


def safe_next(target: Optional[str]) -> Optional[str]:
    """Only same-site relative paths are accepted as post-login targets."""
    if not target:
        return None
    parsed = urlparse(target)
    if parsed.scheme or parsed.netloc or not target.startswith("/") or target.startswith("//"):
        return None
    return target


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        require_authenticated(current_context())
        return view(*args, **kwargs)

    return wrapper


def role_required(*roles: Role):
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            ctx = current_context()
            if len(roles) == 1:
                require_role(ctx, roles[0])
            else:
                require_any_role(ctx, *roles)
            return view(*args, **kwargs)

        return wrapper

    return decorator


def csrf_protected(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if request.method in _MUTATING_METHODS:
            verify_csrf(current_context(), supplied_csrf_token())
        return view(*args, **kwargs)

    return wrapper


def init_app(app: Flask) -> None:
    """Install per-request session bookkeeping and the error mapping."""

    @app.before_request
    def _load_request_context():
        session.permanent = True
        store = SessionStore(
            session,
            idle_timeout=int(app.config.get("SESSION_IDLE_TIMEOUT", 1800)),
            rotate_interval=int(app.config.get("SESSION_ROTATE_INTERVAL", 600)),
        )
        g.session_store = store
        g.request_context = RequestContext.anonymous()
        g.request_context = store.begin()

    register_error_handlers(app)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(Unauthenticated)
    def _unauthenticated(exc: Unauthenticated):
        target = request.full_path if request.method == "GET" else request.path
        target = target.rstrip("?")
        session_store().remember_redirect(target)
        params = {"next": target}
        if exc.reason:
            params["error"] = exc.reason
        return redirect(url_for("login", **params))

    @app.errorhandler(Unauthorized)
    def _unauthorized(exc: Unauthorized):
        return redirect(url_for("error_page"))

    @app.errorhandler(SecurityTokenMismatch)
    def _csrf_mismatch(exc: SecurityTokenMismatch):
        return jsonify(error=str(exc)), 403

    @app.errorhandler(AuthenticationError)
    def _bad_credentials(exc: AuthenticationError):
        return jsonify(error=str(exc)), 401

    @app.errorhandler(OutOfRange)
    def _out_of_range(exc: OutOfRange):
        return jsonify(error=str(exc), field=exc.field), 400

    @app.errorhandler(ValidationError)
    def _invalid(exc: ValidationError):
        return jsonify(error=str(exc)), 400

    @app.errorhandler(RecordNotFound)
    def _not_found(exc: RecordNotFound):
        return jsonify(error="Not found"), 404

    @app.errorhandler(DuplicateRecord)
    def _duplicate(exc: DuplicateRecord):
        logger.warning("Duplicate record escaped a service: %s", exc)
        return jsonify(error="Record already exists"), 409

    @app.errorhandler(StorageUnavailable)
    def _storage(exc: StorageUnavailable):
        logger.error("Storage unavailable on %s %s: %s", request.method, request.path, exc)
        return jsonify(error="The service is temporarily unavailable"), 503
