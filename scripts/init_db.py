#!/usr/bin/env python3
from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from outreach.config import load_settings
from outreach.logging import configure_logging, get_logger
from outreach.storage import create_db_engine, init_schema


def main() -> int:
    settings = load_settings()
    configure_logging(settings.log_level, sql_echo=settings.sql_echo)
    log = get_logger(__name__)

    engine = create_db_engine(settings.db_path, pool_size=1)
    try:
        init_schema(engine)
    finally:
        engine.dispose()

    log.info("DB initialized at %s", settings.db_path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
