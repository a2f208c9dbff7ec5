import os
import logging
from logging.handlers import TimedRotatingFileHandler
from typing import Any, Dict

from learnsync.core.config import settings


def get_logger(name: str = "learnsync"):
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    # If no handlers are attached, add console + timed rotating file handler
    if not logger.handlers:
        console = logging.StreamHandler()
        console.setLevel(logging.DEBUG)
        console_fmt = logging.Formatter(
            "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
            "%Y-%m-%d %H:%M:%S"
        )
        console.setFormatter(console_fmt)
        logger.addHandler(console)

        # Rotates at midnight, keeps 7 days of logs
        log_dir = settings.LOG_DIR
        os.makedirs(log_dir, exist_ok=True)

        log_path = os.path.join(log_dir, f"{name}.log")
        file_handler = TimedRotatingFileHandler(
            filename=log_path,
            when="midnight",
            interval=1,
            backupCount=7,
            encoding="utf-8",
            utc=False
        )
        file_handler.suffix = "%Y-%m-%d"
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(console_fmt)
        logger.addHandler(file_handler)

    return logger


class LogContext(logging.LoggerAdapter):
    """
    Request-scoped logger carrying correlation fields.

    Every message is prefixed with the bound fields rendered as key=value.
    Contexts are immutable: bind() returns a new context with the extra
    fields merged in, so a phase can add e.g. program_id without leaking
    it into the caller's context.
    """

    def __init__(self, logger: logging.Logger, fields: Dict[str, Any] = None):
        super().__init__(logger, {})
        self.fields: Dict[str, Any] = dict(fields or {})

    def bind(self, **fields: Any) -> "LogContext":
        merged = {**self.fields, **fields}
        return LogContext(self.logger, {k: v for k, v in merged.items() if v is not None})

    def process(self, msg, kwargs):
        if not self.fields:
            return msg, kwargs
        prefix = " ".join(f"{k}={v}" for k, v in self.fields.items())
        return f"[{prefix}] {msg}", kwargs


def log_context(name: str, **fields: Any) -> LogContext:
    """Build a fresh context on top of the named logger."""
    return LogContext(get_logger(name), fields)
