"""
Logging setup.

All output goes to stderr: on the stdio transport stdout carries the MCP
protocol. Development gets a readable line format, other environments get
one JSON object per line.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

DEV_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)-7s %(name)s: %(message)s"
DEV_DATEFMT = "%Y-%m-%d %H:%M:%S"


class JSONFormatter(logging.Formatter):
    """Single-line JSON log records."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, ensure_ascii=False)


def setup_logging(level: str = "info", environment: str = "development") -> None:
    handler = logging.StreamHandler(sys.stderr)
    if environment == "development":
        handler.setFormatter(logging.Formatter(DEV_FORMAT, DEV_DATEFMT))
    else:
        handler.setFormatter(JSONFormatter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level.upper())

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
