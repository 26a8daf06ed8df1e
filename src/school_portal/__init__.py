"""School Portal package.

This package is organized by feature modules (users, school, attendance, grading,
reports) with a thin Flask controller layer and service/repository layers below it.
"""
from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.logging import setup_logging
from .container import Container, build_container
from .core.constants import MAX_UPLOAD_BYTES, SESSION_IDLE_TIMEOUT_SECONDS, SESSION_ROTATE_INTERVAL_SECONDS
from .database.bootstrap import apply_schema, ensure_bootstrap_admin, list_tables
from .grading.controller import register as register_grading
from .reports.controller import register as register_reports
from .school.controller import register as register_school
from .security.decorators import init_app as init_security
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    db_config = getattr(settings, "DB_CONFIG")
    idle_timeout = int(getattr(settings, "SESSION_IDLE_TIMEOUT", SESSION_IDLE_TIMEOUT_SECONDS))
    max_upload_bytes = int(getattr(settings, "MAX_UPLOAD_BYTES", MAX_UPLOAD_BYTES))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config.update(
        DEBUG=bool(getattr(settings, "DEBUG", False)),
        TESTING=bool(getattr(settings, "TESTING", False)),
        SESSION_IDLE_TIMEOUT=idle_timeout,
        SESSION_ROTATE_INTERVAL=int(getattr(settings, "SESSION_ROTATE_INTERVAL", SESSION_ROTATE_INTERVAL_SECONDS)),
        PERMANENT_SESSION_LIFETIME=timedelta(seconds=idle_timeout),
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE="Lax",
        SESSION_COOKIE_SECURE=bool(getattr(settings, "SESSION_COOKIE_SECURE", False)),
        # Multipart overhead on top of the document limit.
        MAX_CONTENT_LENGTH=max_upload_bytes + 64 * 1024,
        UPLOAD_DIR=getattr(settings, "UPLOAD_DIR"),
    )

    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            ensure_bootstrap_admin(db_config, password=getattr(settings, "BOOTSTRAP_ADMIN_PASSWORD", "admin"))
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        container = build_container(
            db_config=db_config,
            upload_dir=app.config["UPLOAD_DIR"],
            max_upload_bytes=max_upload_bytes,
        )

    init_security(app)
    register_users(app, container)
    register_school(app, container)
    register_attendance(app, container)
    register_grading(app, container)
    register_reports(app, container)

    return app
