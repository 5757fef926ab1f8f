"""
Structured logging setup using structlog with masking of personal data.
"""

import logging
import re
import sys
from typing import Any, Dict, Union

import structlog
from rich.console import Console
from rich.logging import RichHandler

from app.core.config import settings


def setup_logging() -> None:
    """Configure structured logging for the application."""

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.LOG_LEVEL),
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        mask_processor,
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.LOG_FORMAT == "json":
        processors.extend(
            [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
        )
    else:
        processors.extend([structlog.dev.ConsoleRenderer(colors=True)])

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.LOG_LEVEL)
        ),
        logger_factory=structlog.WriteLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Celery and uvicorn log through the standard library
    if settings.ENVIRONMENT == "development" and settings.LOG_FORMAT == "text":
        console = Console()
        rich_handler = RichHandler(
            console=console,
            show_time=True,
            show_path=True,
            markup=True,
            rich_tracebacks=True,
        )

        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.addHandler(rich_handler)


SENSITIVE_PATTERNS = {
    "email": re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
    "phone": re.compile(r"(?<![\w-])\+?\d[\d\s\(\)]{8,}\d(?![\w-])"),
    "bearer": re.compile(r"Bearer\s+[A-Za-z0-9\-_\.=]+"),
    "card": re.compile(r"\b\d{4}[\s\-]\d{4}[\s\-]\d{4}[\s\-]\d{4}\b"),
}

SENSITIVE_FIELDS = {
    "password",
    "token",
    "secret",
    "api_key",
    "authorization",
    "registration_number",
    "card_number",
}


def mask_sensitive_data(data: Union[str, Dict, Any]) -> Union[str, Dict, Any]:
    """Mask sensitive data in logs."""
    if isinstance(data, str):
        return _mask_string(data)
    elif isinstance(data, dict):
        return _mask_dict(data)
    elif isinstance(data, (list, tuple)):
        return [mask_sensitive_data(item) for item in data]
    else:
        return data


def _mask_string(text: str) -> str:
    """Mask sensitive patterns in a string."""
    masked_text = SENSITIVE_PATTERNS["email"].sub(
        lambda m: f"{m.group()[:2]}***@{m.group().split('@')[1]}", text
    )
    masked_text = SENSITIVE_PATTERNS["bearer"].sub("Bearer ***", masked_text)
    masked_text = SENSITIVE_PATTERNS["card"].sub("****-****-****-****", masked_text)
    masked_text = SENSITIVE_PATTERNS["phone"].sub("***-***-****", masked_text)
    return masked_text


def _mask_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """Mask sensitive fields in a dictionary."""
    masked_data = {}

    for key, value in data.items():
        key_lower = str(key).lower()

        if any(sensitive_field in key_lower for sensitive_field in SENSITIVE_FIELDS):
            if isinstance(value, str) and len(value) > 4:
                masked_data[key] = f"{value[:2]}***{value[-2:]}"
            else:
                masked_data[key] = "***"
        else:
            masked_data[key] = mask_sensitive_data(value)

    return masked_data


def mask_processor(logger, method_name, event_dict):
    """Structlog processor to mask sensitive data."""
    return _mask_dict(event_dict)


def get_logger(name: str = None) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def log_request_response(
    method: str,
    url: str,
    status_code: int,
    duration: float,
    user_id: str = None,
    **kwargs: Any,
) -> None:
    """Log HTTP request/response with structured data."""
    logger = get_logger("api")

    log_data = {
        "method": method,
        "url": url,
        "status_code": status_code,
        "duration_ms": round(duration * 1000, 2),
        **kwargs,
    }

    if user_id:
        log_data["user_id"] = user_id

    if status_code >= 500:
        logger.error("HTTP request failed", **log_data)
    elif status_code >= 400:
        logger.warning("HTTP request rejected", **log_data)
    else:
        logger.info("HTTP request completed", **log_data)


def log_security_event(
    event_type: str,
    user_id: str = None,
    ip_address: str = None,
    details: Dict[str, Any] = None,
    **kwargs: Any,
) -> None:
    """Log security-related events such as denied decisions."""
    logger = get_logger("security")

    log_data = {"event_type": event_type, **kwargs}

    if user_id:
        log_data["user_id"] = user_id

    if ip_address:
        log_data["ip_address"] = ip_address

    if details:
        log_data["details"] = details

    logger.warning("Security event detected", **log_data)


def log_business_event(
    event_type: str,
    entity_type: str,
    entity_id: str,
    user_id: str = None,
    details: Dict[str, Any] = None,
    **kwargs: Any,
) -> None:
    """Log business events alongside the persisted audit trail."""
    logger = get_logger("business")

    log_data = {
        "event_type": event_type,
        "entity_type": entity_type,
        "entity_id": entity_id,
        **kwargs,
    }

    if user_id:
        log_data["user_id"] = user_id

    if details:
        log_data["details"] = details

    logger.info("Business event occurred", **log_data)
