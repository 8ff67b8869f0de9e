"""Logging configuration for the FTPS client.

Provides logging setup with credential redaction so passwords sent
on the control connection are never written to log output.
"""

import logging
import re
import sys
from pathlib import Path
from typing import Optional


# Credential patterns to redact from logs
PII_PATTERNS = [
    # Password in various formats
    (re.compile(r'(password["\s:=]+)[^\s,}\]]+', re.IGNORECASE), r'\1[REDACTED]'),
    (re.compile(r'(passwd["\s:=]+)[^\s,}\]]+', re.IGNORECASE), r'\1[REDACTED]'),
    # PASS command on the control connection
    (re.compile(r'(\bPASS )\S+'), r'\1[REDACTED]'),
    # FTP URLs with credentials
    (re.compile(r'(ftp(?:e?s)?://)[^:/@\s]+:[^@\s]+@', re.IGNORECASE), r'\1[REDACTED]@'),
]


class PIIRedactingFormatter(logging.Formatter):
    """Custom formatter that redacts credentials from log messages."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record, redacting any credentials."""
        message = super().format(record)
        for pattern, replacement in PII_PATTERNS:
            message = pattern.sub(replacement, message)
        return message


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    console: bool = True
) -> logging.Logger:
    """
    Configure the "ftpsclient" logger with credential redaction.

    Args:
        level: Logging level (default INFO; DEBUG shows every command)
        log_file: Optional file path for log output
        console: Whether to output to stderr (default True)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("ftpsclient")
    logger.setLevel(level)

    # Clear any existing handlers
    logger.handlers.clear()

    formatter = PIIRedactingFormatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
