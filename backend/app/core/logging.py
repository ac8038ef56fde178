"""Structured JSON logging configuration."""
import logging
import sys
from pythonjsonlogger import jsonlogger
from app.core.config import settings


def setup_logging() -> None:
    """Configure JSON structured logging for production, human-readable for dev.

    The deadline sweep runs unattended, so its outcome lines are the only
    place failures surface; the app.services.* sweep loggers stay at INFO in
    every env. APScheduler's own per-job chatter is lowered to WARNING.
    """
    if getattr(settings, 'APP_ENV', 'development') == "production":
        handler = logging.StreamHandler(sys.stdout)
        formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
        handler.setFormatter(formatter)
        logging.root.handlers = [handler]
        logging.root.setLevel(logging.INFO)
    else:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )

    # APScheduler logs every job execution at INFO; one line per sweep is ours.
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
