"""Apply database/schema.sql to the database named by the active settings module."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for p in (REPO_ROOT, REPO_ROOT / "src" / "class_attendance"):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from config import load_settings

from class_attendance.common.log_setup import configure_logging
from class_attendance.database.bootstrap import apply_schema, list_tables

logger = logging.getLogger("init_db")


def main() -> None:
    settings = load_settings()
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    logger.info(
        "schema applied",
        extra={
            "target": f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}",
            "tables": len(list_tables(db_config)),
        },
    )


if __name__ == "__main__":
    main()
