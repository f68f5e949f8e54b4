"""Logging configuration for the subscription feed service."""

import json
import logging
import sys

from subfeed.config import get_settings


class JsonFormatter(logging.Formatter):
    """JSON formatter for production logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        base = {
            "ts": self.formatTime(record),
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(base)


def setup_logging(level: int = logging.INFO) -> None:
    """Configure logging based on environment."""
    settings = get_settings()
    handler = logging.StreamHandler(sys.stdout)

    if settings.env == "prod":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # httpx logs every request URL at INFO, which would leak API keys
    logging.getLogger("httpx").setLevel(logging.WARNING)
