"""
Logging setup for the Sonar research server.

Records are written as one JSON object per line to rotating files under
LOG_DIR (app.log for INFO+, error.log for ERROR+, debug.log when LOG_LEVEL is
DEBUG). stdout carries the MCP stream, so the optional console handler writes
errors to stderr only.

Environment:
    LOG_DIR         directory for the log files (default: logs)
    LOG_LEVEL       root level name (default: INFO)
    LOG_TO_CONSOLE  "true" to echo errors to stderr
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

MAX_BYTES = 10 * 1024 * 1024  # 10MB per file
BACKUP_COUNT = 5


class JsonFormatter(logging.Formatter):
    """
    Render a record as a single JSON line.

    Contextual fields passed as ``extra={"extra_fields": {...}}`` are merged
    into the top-level object.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            log_data.update(extra_fields)

        return json.dumps(log_data, default=str)


class LoggerConfig:
    """
    One-time configuration of the root logger from the environment.
    """

    _initialized = False

    @staticmethod
    def _rotating_handler(path: Path, level: int, formatter: logging.Formatter) -> logging.Handler:
        handler = logging.handlers.RotatingFileHandler(
            path, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8"
        )
        handler.setLevel(level)
        handler.setFormatter(formatter)
        return handler

    @classmethod
    def setup_logging(cls) -> None:
        """
        Install the file handlers (and the optional stderr handler) on the root logger.
        Calling it again is a no-op.
        """
        if cls._initialized:
            return

        log_dir = Path(os.getenv("LOG_DIR", "logs"))
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        to_console = os.getenv("LOG_TO_CONSOLE", "false").lower() == "true"

        log_dir.mkdir(parents=True, exist_ok=True)

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, log_level, logging.INFO))
        root_logger.handlers.clear()

        json_formatter = JsonFormatter()
        root_logger.addHandler(cls._rotating_handler(log_dir / "app.log", logging.INFO, json_formatter))
        root_logger.addHandler(
            cls._rotating_handler(log_dir / "error.log", logging.ERROR, json_formatter)
        )
        if log_level == "DEBUG":
            root_logger.addHandler(
                cls._rotating_handler(log_dir / "debug.log", logging.DEBUG, json_formatter)
            )

        if to_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(logging.ERROR)
            console_handler.setFormatter(
                logging.Formatter(
                    fmt="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
            root_logger.addHandler(console_handler)

        cls._initialized = True

        logging.getLogger(__name__).info(
            "Logging system initialized",
            extra={
                "extra_fields": {
                    "log_level": log_level,
                    "log_dir": str(log_dir),
                    "console_logging": to_console,
                }
            },
        )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger, configuring logging first if needed.

    Example:
        >>> from utils.logger import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Research saved", extra={"extra_fields": {"model": "sonar"}})
    """
    LoggerConfig.setup_logging()
    return logging.getLogger(name)


LoggerConfig.setup_logging()
