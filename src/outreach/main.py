# src/outreach/main.py
from __future__ import annotations

import uvicorn

from outreach.config import load_settings
from outreach.logging import configure_logging, get_logger

_LOG = get_logger(__name__)


def main() -> int:
    """
    Serves the API with settings from OUTREACH_* env vars.

    Dev alternative with autoreload:
      uvicorn outreach.api.app:app --reload
    """
    settings = load_settings()
    configure_logging(settings.log_level, sql_echo=settings.sql_echo)

    _LOG.info("Serving outreach API on %s:%d (db=%s)", settings.host, settings.port, settings.db_path)
    uvicorn.run(
        "outreach.api.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
        log_config=None,  # keep the handlers configured above
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
