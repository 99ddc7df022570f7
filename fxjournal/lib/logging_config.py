"""Logging configuration with security filters."""

import logging
import os
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any


class SensitiveDataFilter(logging.Filter):
    """Filter to redact broker tokens and other secrets from log messages."""

    SENSITIVE_KEYS = {"apikey", "api_key", "token", "auth-token", "password", "secret", "authorization"}

    # Patterns to match sensitive data
    SENSITIVE_PATTERNS = [
        (
            re.compile(
                r"(apikey|api_key|auth-token|token|password|secret)=([^&\s]+)", re.IGNORECASE
            ),
            r"\1=[REDACTED]",
        ),
        (
            re.compile(r'("(?:token|password|auth-token)"\s*:\s*)"([^"]+)"', re.IGNORECASE),
            r'\1"[REDACTED]"',
        ),
        (re.compile(r"Bearer\s+[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE), "Bearer [REDACTED]"),
        (re.compile(r"Authorization:\s*[^\s]+", re.IGNORECASE), "Authorization: [REDACTED]"),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Filter log record to redact sensitive information.

        Args:
            record: Log record to filter

        Returns:
            True to keep the record
        """
        if isinstance(record.msg, str):
            record.msg = self._redact_value(record.msg)

        if record.args:
            if isinstance(record.args, dict):
                record.args = self._redact_dict(record.args)
            elif isinstance(record.args, (list, tuple)):
                record.args = tuple(self._redact_value(arg) for arg in record.args)

        return True

    def _redact_dict(self, data: dict[str, Any]) -> dict[str, Any]:
        """Redact sensitive keys from dictionary."""
        return {
            k: "[REDACTED]" if k.lower() in self.SENSITIVE_KEYS else self._redact_value(v)
            for k, v in data.items()
        }

    def _redact_value(self, value: Any) -> Any:
        """Redact sensitive data from any value type."""
        if isinstance(value, str):
            for pattern, replacement in self.SENSITIVE_PATTERNS:
                value = pattern.sub(replacement, value)
        elif isinstance(value, dict):
            value = self._redact_dict(value)
        elif isinstance(value, (list, tuple)):
            value = type(value)(self._redact_value(item) for item in value)
        return value


def setup_logging(level: int = logging.INFO, log_file: str | None = None) -> None:
    """
    Configure logging with security filters and file rotation.

    Args:
        level: Logging level (default: INFO)
        log_file: Path to log file (default: ~/.fxjournal/fxjournal.log,
                 or the LOG_FILE environment variable)

    Example:
        >>> from fxjournal.lib.logging_config import setup_logging
        >>> setup_logging(logging.DEBUG)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    sensitive_filter = SensitiveDataFilter()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
    )

    if not root_logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        console_handler.addFilter(sensitive_filter)
        root_logger.addHandler(console_handler)

        if log_file is None:
            log_file = os.getenv("LOG_FILE", str(Path.home() / ".fxjournal" / "fxjournal.log"))

        if log_file:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            # Rotating file handler: 10MB per file, keep 5 backup files
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            file_handler.addFilter(sensitive_filter)
            root_logger.addHandler(file_handler)
    else:
        for handler in root_logger.handlers:
            handler.setLevel(level)
            if not any(isinstance(f, SensitiveDataFilter) for f in handler.filters):
                handler.addFilter(sensitive_filter)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger that redacts secrets even before setup_logging() runs.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger carrying a SensitiveDataFilter
    """
    logger = logging.getLogger(name)

    if not any(isinstance(f, SensitiveDataFilter) for f in logger.filters):
        logger.addFilter(SensitiveDataFilter())

    return logger
