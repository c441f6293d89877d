"""Structured logging configuration module"""

import logging
import re

import structlog
from pythonjsonlogger.json import JsonFormatter


class PayloadRedactionFilter(logging.Filter):
    """Filter to keep image payloads out of logs"""

    # Inline image payloads
    PAYLOAD_PATTERNS = [
        (re.compile(r"data:image/[a-zA-Z0-9.+-]+;base64,[A-Za-z0-9+/=]+"), "data:image/***REDACTED***"),
        # Long base64 runs (raw asset bodies pasted into messages)
        (re.compile(r"[A-Za-z0-9+/]{200,}={0,2}"), "***REDACTED_BLOB***"),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        """Redact payloads from log records

        Args:
            record: Log record

        Returns:
            Always True (message is modified and passed through)
        """
        if hasattr(record, "msg") and isinstance(record.msg, str):
            record.msg = redact_text(record.msg)

        if hasattr(record, "args") and record.args and isinstance(record.args, tuple):
            record.args = tuple(redact_text(arg) if isinstance(arg, str) else arg for arg in record.args)

        return True


def redact_text(text: str) -> str:
    """Replace inline image payloads in a string"""
    for pattern, replacement in PayloadRedactionFilter.PAYLOAD_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def sanitize_value(value):
    """Replace binary values with a size marker

    Args:
        value: Any event value

    Returns:
        The value with bytes and inline payloads replaced, recursing into containers
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"<{len(value)} bytes>"
    if isinstance(value, str):
        return redact_text(value)
    if isinstance(value, dict):
        return sanitize_dict(value)
    if isinstance(value, (list, tuple)):
        return [sanitize_value(item) for item in value]
    return value


def sanitize_dict(data: dict) -> dict:
    """Redact binary payloads from a dictionary

    Args:
        data: Dictionary to sanitize

    Returns:
        Sanitized dictionary
    """
    return {key: sanitize_value(value) for key, value in data.items()}


class PayloadRedactionProcessor:
    """Payload redaction processor for structlog"""

    def __call__(self, logger, method_name, event_dict):
        """Redact binary payloads from event dictionary"""
        return sanitize_dict(event_dict)


def configure_logging(level: str = "INFO"):
    """Configure structured logging

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            PayloadRedactionProcessor(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    handler.addFilter(PayloadRedactionFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # PIL logs every chunk it parses at DEBUG
    logging.getLogger("PIL").setLevel(max(logging.INFO, logging.getLevelName(level)))


def get_logger(name: str):
    """Get structured logger

    Args:
        name: Logger name (usually __name__)

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)
