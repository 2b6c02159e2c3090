"""Group-membership authorization for session principals."""

import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

from fastapi import status
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.requests import Request
from starlette.responses import Response

from waad_sso.schemas.user import UserRecord
from waad_sso.services.identity.errors import Unauthorized
from waad_sso.utils.logging_utils import redact_email

logger = logging.getLogger(__name__)

FailureHandler = Callable[[Request, Unauthorized], Union[Response, Awaitable[Response]]]


def is_member(user: Optional[UserRecord], group_name: str) -> bool:
    """Exact, case-sensitive match of ``group_name`` against the user's groups."""
    if user is None:
        return False
    for group in user.groups:
        if group.name == group_name:
            return True
    return False


class AuthorizationGate:
    """Allows or rejects a principal; rejections raise ``Unauthorized``."""

    def __init__(self, login_path: str = "/login") -> None:
        self.login_path = login_path

    def check_authenticated(
        self, user: Optional[UserRecord], on_failure: Optional[FailureHandler] = None
    ) -> UserRecord:
        if user is None:
            raise Unauthorized(authenticated=False, on_failure=on_failure)
        return user

    def check_group(
        self,
        user: Optional[UserRecord],
        group_name: str,
        on_failure: Optional[FailureHandler] = None,
    ) -> UserRecord:
        if user is None:
            raise Unauthorized(authenticated=False, group=group_name, on_failure=on_failure)

        if not is_member(user, group_name):
            logger.info("%s is not a member of %r", redact_email(user.email), group_name)
            raise Unauthorized(authenticated=True, group=group_name, on_failure=on_failure)

        return user

    async def handle_failure(self, request: Request, exc: Unauthorized) -> Response:
        """Exception handler for ``Unauthorized``.

        Uses the caller's failure handler when one was given. Otherwise an
        anonymous request is sent to the login page and a logged-in one gets
        403.
        """
        if exc.on_failure is not None:
            result = exc.on_failure(request, exc)
            if inspect.isawaitable(result):
                result = await result
            return result

        if not exc.authenticated:
            return RedirectResponse(url=self.login_path, status_code=status.HTTP_302_FOUND)

        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)}
        )
