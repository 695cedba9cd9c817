"""
Structured logging setup for the store communications service.
Provides JSON-formatted logs with consistent fields for production monitoring.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging with JSON output for production.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            _add_service_context,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def _add_service_context(logger, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Tag every entry with the service name."""
    event_dict.setdefault("service", "storecomms")
    return event_dict


def get_logger(name: str = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def log_request(method: str, path: str, status_code: int, duration_ms: float):
    """Log HTTP requests with consistent fields."""
    logger = get_logger("http")

    log_data = {
        "method": method,
        "path": path,
        "status_code": status_code,
        "duration_ms": duration_ms,
    }

    if status_code >= 400:
        logger.warning("HTTP request failed", **log_data)
    else:
        logger.info("HTTP request completed", **log_data)


def log_staffbase_call(method: str, path: str, status_code: int, attempt: int, duration_ms: float):
    """Log one attempt against the Staffbase API; failures and throttling at warning level."""
    logger = get_logger("staffbase")

    log_data = {
        "method": method,
        "path": path,
        "status_code": status_code,
        "attempt": attempt,
        "duration_ms": duration_ms,
    }

    if status_code >= 400:
        logger.warning("Staffbase call failed", **log_data)
    else:
        logger.debug("Staffbase call completed", **log_data)
