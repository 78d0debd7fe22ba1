# ============================================================================
# shared/logging.py - Logging configuration
# ============================================================================

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from config import LOG_LEVEL, LOG_DIR

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
APP_LOGGERS = ["tickets", "operators", "display", "receipts", "system"]


def setup_logging() -> None:
    """Configure application logging"""
    # Create logs directory if it doesn't exist
    log_dir = Path(LOG_DIR)
    log_dir.mkdir(exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper()),
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(),
            RotatingFileHandler(log_dir / "ticket-queue.log", maxBytes=5_000_000, backupCount=5)
        ]
    )

    # Set up app-specific loggers
    for app_name in APP_LOGGERS:
        app_logger = logging.getLogger(f"apps.{app_name}")
        if any(getattr(h, "_queue_app_handler", False) for h in app_logger.handlers):
            continue
        app_handler = RotatingFileHandler(log_dir / f"{app_name}.log", maxBytes=2_000_000, backupCount=3)
        app_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        app_handler._queue_app_handler = True
        app_logger.addHandler(app_handler)
