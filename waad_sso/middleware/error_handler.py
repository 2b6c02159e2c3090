"""Last-resort error handler middleware with PII redaction."""

import logging
from typing import Callable

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from waad_sso.config import settings
from waad_sso.utils.logging_utils import redact_email, redact_ip

logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Middleware for handling uncaught exceptions.

    - Logs errors with the session user and client IP redacted
    - Returns a generic message to clients (details only in DEBUG)
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Handle request and catch any uncaught exceptions."""
        try:
            return await call_next(request)

        except Exception as exc:
            user = getattr(request.state, "user", None)
            user_email = getattr(user, "email", None)

            logger.exception(
                "Unhandled %s on %s %s (user=%s, client=%s)",
                type(exc).__name__,
                request.method,
                request.url.path,
                redact_email(user_email),
                redact_ip(request.client.host if request.client else None),
            )

            if settings.DEBUG:
                error_detail = {
                    "error": str(exc),
                    "type": type(exc).__name__,
                    "detail": "An error occurred processing your request",
                }
            else:
                error_detail = {
                    "error": "Internal server error",
                    "detail": "An unexpected error occurred. Please try again later.",
                }

            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=error_detail
            )
