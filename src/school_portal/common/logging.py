"""Logging setup for the school portal.

One console handler on the root logger; modules log through
``logging.getLogger(__name__)``.
"""
from __future__ import annotations

import logging
import sys
from typing import Optional

_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s:%(funcName)s:%(lineno)d - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: Optional[str] = None) -> None:
    root = logging.getLogger()
    resolved = getattr(logging, str(level or "INFO").upper(), logging.INFO)
    root.setLevel(resolved)

    # create_app may run more than once per process (tests); keep a single handler.
    for handler in root.handlers:
        if getattr(handler, "_school_portal", False):
            handler.setLevel(resolved)
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
    handler.setLevel(resolved)
    handler._school_portal = True  # type: ignore[attr-defined]
    root.addHandler(handler)

    # Quieten chatty libraries unless we are debugging.
    if resolved > logging.DEBUG:
        logging.getLogger("werkzeug").setLevel(logging.WARNING)
        logging.getLogger("mysql.connector").setLevel(logging.WARNING)
