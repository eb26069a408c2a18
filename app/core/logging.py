import logging
import sys
from typing import Dict, Any, Optional
from datetime import datetime, timezone
from app.config import settings

LOG_FORMAT = '%(asctime)s | %(levelname)s | %(name)s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Libraries that log every query, SES call or webhook post at INFO/DEBUG
QUIET_LOGGERS = ("uvicorn.access", "asyncpg", "botocore", "boto3", "httpcore", "httpx")


class ColoredFormatter(logging.Formatter):
    """Level names colored by severity, for interactive terminals"""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record):
        color = self.COLORS.get(record.levelname)
        if not color:
            return super().format(record)
        original = record.levelname
        record.levelname = f"{color}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def resolve_log_level() -> int:
    if settings.log_level:
        level = logging.getLevelName(settings.log_level.upper())
        if isinstance(level, int):
            return level
    return logging.DEBUG if settings.debug else logging.INFO


def setup_logging(stream=None) -> logging.Logger:
    """
    Configure the root logger for the API process.

    LOG_LEVEL overrides the level; otherwise DEBUG turns on debug output.
    Colors are only used when the stream is a terminal, so container logs
    stay plain text.
    """
    stream = stream or sys.stdout
    level = resolve_log_level()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    use_color = hasattr(stream, "isatty") and stream.isatty()
    formatter_class = ColoredFormatter if use_color else logging.Formatter
    handler.setFormatter(formatter_class(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger


def log_request_context(user_id: Optional[str] = None, campaign_id: Optional[str] = None) -> Dict[str, Any]:
    """Who did what where, for error reports; account ids are shortened"""
    context: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    if user_id:
        context["user_id"] = str(user_id)[:8] + "..."

    if campaign_id:
        context["campaign_id"] = str(campaign_id)

    return context
