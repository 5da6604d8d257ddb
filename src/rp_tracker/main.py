"""Application entry point."""

import logging

import uvicorn

from .config import SETTINGS
from .logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    setup_logging()
    logger.info("Starting RP Tracker API on %s:%s", SETTINGS.HOST, SETTINGS.PORT)
    uvicorn.run(
        "rp_tracker.server.main:app",
        host=SETTINGS.HOST,
        port=SETTINGS.PORT,
        log_config=None,  # keep the root logger configured by setup_logging
    )


if __name__ == "__main__":
    main()
