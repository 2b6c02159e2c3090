"""
Structured logging configuration.

Sets up stdlib logging and structlog. Production output is JSON so log
aggregation can index the SSO events; development output is human-readable.

Usage:
    from waad_sso.core.logging_config import setup_logging, get_logger

    setup_logging()

    logger = get_logger(__name__)
    logger.info("sso_login", email=redact_email(user.email))
"""

import logging
import sys

import structlog
from pythonjsonlogger import jsonlogger

from waad_sso.config import settings


def setup_logging() -> None:
    """
    Configure structured logging for the application.

    JSON is used when ``LOG_FORMAT=json`` or in production.
    """
    use_json = settings.LOG_FORMAT == "json" or settings.is_production

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if use_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configure_uvicorn_logging(use_json)

    if settings.is_production:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
        logging.getLogger("httpx").setLevel(logging.WARNING)
        # python3-saml logs full assertions at debug level
        logging.getLogger("onelogin").setLevel(logging.WARNING)


def _configure_uvicorn_logging(use_json: bool = False) -> None:
    """Give uvicorn's access and error logs a JSON formatter."""
    if use_json:
        formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)

        for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error"]:
            logger = logging.getLogger(logger_name)
            logger.handlers.clear()
            logger.addHandler(handler)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("sso_logout", email="u***@example.com")
    """
    return structlog.get_logger(name)
