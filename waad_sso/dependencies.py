"""FastAPI dependencies for authentication and authorization."""

from typing import TYPE_CHECKING, Callable, Optional

from fastapi import Depends, Request

from waad_sso.schemas.user import UserRecord
from waad_sso.services.identity.gate import FailureHandler

if TYPE_CHECKING:
    from waad_sso.services.identity.lifecycle import SSOAuthenticator


def get_sso(request: Request) -> "SSOAuthenticator":
    """Return the ``SSOAuthenticator`` installed on the application."""
    sso = getattr(request.app.state, "sso", None)
    if sso is None:
        raise RuntimeError("SSOAuthenticator has not been set up on this application")
    return sso


def get_current_user(request: Request) -> Optional[UserRecord]:
    """
    Resolve the session principal and attach it to ``request.state.user``.

    Returns:
        The principal, or None for anonymous requests (including sessions
        whose user is no longer cached).
    """
    user = get_sso(request).current_user(request)
    request.state.user = user
    return user


def require_authenticated(on_failure: Optional[FailureHandler] = None) -> Callable:
    """
    Dependency factory: the request must carry a session principal.

    Args:
        on_failure: Called with ``(request, exc)`` to build the response
            when the check fails. Defaults to a redirect to ``/login``.
    """

    def dependency(
        request: Request, user: Optional[UserRecord] = Depends(get_current_user)
    ) -> UserRecord:
        return get_sso(request).gate.check_authenticated(user, on_failure)

    return dependency


def require_group(group_name: str, on_failure: Optional[FailureHandler] = None) -> Callable:
    """
    Dependency factory: the principal must belong to ``group_name``.

    The group name must match exactly (case-sensitive). Anonymous requests
    fail the same way as non-members, through ``on_failure``.

    Example:
        @app.get("/admin")
        async def admin(user: UserRecord = Depends(require_group("Admins"))):
            ...
    """

    def dependency(
        request: Request, user: Optional[UserRecord] = Depends(get_current_user)
    ) -> UserRecord:
        return get_sso(request).gate.check_group(user, group_name, on_failure)

    return dependency


ensure_authenticated = require_authenticated()
