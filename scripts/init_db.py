from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv

from config import get_settings_module

from school_portal.common.logging import setup_logging
from school_portal.database.bootstrap import apply_schema, ensure_bootstrap_admin, list_tables

logger = logging.getLogger("school_portal.scripts.init_db")


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config)
    ensure_bootstrap_admin(db_config, password=getattr(settings, "BOOTSTRAP_ADMIN_PASSWORD", "admin"))
    tables = list_tables(db_config)
    logger.info(
        "Applied schema.sql -> %s@%s:%s/%s (tables=%d)",
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
        len(tables),
    )


if __name__ == "__main__":
    main()
