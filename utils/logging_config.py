"""
Logging setup for the cart engine.

Rotating file plus console output, with shopper PII and credentials masked
before any record is written.
"""

import logging
import logging.handlers
import re
from pathlib import Path
from typing import Pattern

import config


class SecretMaskingFilter(logging.Filter):
    """
    Logging filter that masks sensitive data in log records.

    Replaces sensitive values with [REDACTED_*] markers.

    Masks:
    - Tokens and passwords
    - Email addresses and phone numbers
    - Free-text cake messages written by shoppers
    - Delivery addresses
    """

    PATTERNS: list[tuple[Pattern, str]] = [
        # Tokens
        (re.compile(r'(token["\']?\s*[:=]\s*["\']?)([A-Za-z0-9_\-:]{20,})(["\']?)', re.IGNORECASE), r'\1[REDACTED_TOKEN]\3'),
        (re.compile(r'(Bearer\s+)([A-Za-z0-9_\-\.]+)', re.IGNORECASE), r'\1[REDACTED_BEARER_TOKEN]'),

        # Passwords
        (re.compile(r'(password["\']?\s*[:=]\s*["\']?)([^\s"\']+)(["\']?)', re.IGNORECASE), r'\1[REDACTED_PASSWORD]\3'),

        # Cake messages are personal ("Happy birthday Riya")
        (re.compile(r'(message["\']?\s*[:=]\s*["\'])([^"\']+)(["\'])', re.IGNORECASE), r'\1[REDACTED_MESSAGE]\3'),

        # Email addresses (PII)
        (re.compile(r'\b([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})\b'), '[REDACTED_EMAIL]'),

        # Indian mobile numbers, with or without +91
        (re.compile(r'(?<!\d)(\+?91[-\s]?)?[6-9]\d{9}(?!\d)'), '[REDACTED_PHONE]'),

        # Delivery addresses
        (re.compile(r'(address["\']?\s*[:=]\s*["\']?)([^"\']{10,})(["\']?)', re.IGNORECASE), r'\1[REDACTED_ADDRESS]\3'),
    ]

    @classmethod
    def mask(cls, text: str) -> str:
        for pattern, replacement in cls.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        # Records are rewritten in place and never dropped
        if record.msg:
            record.msg = self.mask(str(record.msg))
        if record.args and isinstance(record.args, tuple):
            record.args = tuple(self.mask(arg) if isinstance(arg, str) else arg for arg in record.args)
        return True


LOG_FORMAT = '%(asctime)s | %(name)-25s | %(levelname)-8s | %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
QUIET_LOGGERS = ("sqlalchemy.engine", "aiosqlite")


def _build_handlers(log_dir: Path, log_level: int, retention_days: int) -> list[logging.Handler]:
    file_handler = logging.handlers.TimedRotatingFileHandler(
        filename=log_dir / "cart_engine.log",
        when="midnight",
        backupCount=retention_days,
        encoding="utf-8"
    )
    handlers = [file_handler, logging.StreamHandler()]
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(log_level)
    return handlers


def setup_logging(log_dir: Path = Path("logs")) -> None:
    """
    Configure the root logger for the cart engine.

    Writes to ``<log_dir>/cart_engine.log`` (rotated at midnight, kept for
    LOG_RETENTION_DAYS) and to the console, both at LOG_LEVEL. With
    LOG_MASK_SECRETS enabled every handler gets a SecretMaskingFilter.
    Calling it again replaces the handlers installed by the previous call.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)

    handlers = _build_handlers(log_dir, log_level, config.LOG_RETENTION_DAYS)
    if config.LOG_MASK_SECRETS:
        for handler in handlers:
            handler.addFilter(SecretMaskingFilter())

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    # Snapshot rows are whole carts as JSON
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"[Logging] level={config.LOG_LEVEL}, retention={config.LOG_RETENTION_DAYS}d, "
        f"masking={'on' if config.LOG_MASK_SECRETS else 'off'}"
    )
