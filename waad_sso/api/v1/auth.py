"""
SSO API endpoints.

Route order is load-bearing: the callbacks are registered before the
plain ``/login`` and ``/logout`` routes, and the whole router must be
included before any catch-all route.
"""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse, Response

from waad_sso.core.logging_config import get_logger
from waad_sso.dependencies import ensure_authenticated, get_sso
from waad_sso.schemas.user import UserRecord
from waad_sso.services.identity.errors import ResolutionError, SamlValidationError
from waad_sso.utils.logging_utils import redact_email, redact_ip

logger = get_logger(__name__)

router = APIRouter(tags=["sso"])

SESSION_FLASH_KEY = "flash"


async def _complete_login(request: Request) -> RedirectResponse:
    sso = get_sso(request)
    try:
        user = await sso.login(request)
    except (SamlValidationError, ResolutionError) as exc:
        logger.warning("sso_login_failed", error=str(exc), error_type=type(exc).__name__)
        request.session[SESSION_FLASH_KEY] = {"error": str(exc)}
        return RedirectResponse(url=sso.failure_redirect, status_code=status.HTTP_303_SEE_OTHER)

    logger.info("sso_login", email=redact_email(user.email), groups=len(user.groups))
    return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)


@router.post("/login/callback")
async def login_callback(request: Request):
    """Assertion consumer: the identity provider posts its SAML response here."""
    return await _complete_login(request)


@router.get("/login")
async def login(request: Request):
    """Send the browser to the identity provider (mock mode logs in directly)."""
    sso = get_sso(request)
    redirect_url = await sso.strategy.login_redirect_url(request, return_to=str(request.base_url))
    if redirect_url is None:
        return await _complete_login(request)
    return RedirectResponse(url=redirect_url, status_code=status.HTTP_302_FOUND)


@router.get("/login/metadata")
async def metadata(request: Request):
    """Service provider metadata for registering this app with the IdP."""
    xml = await get_sso(request).strategy.metadata(request)
    if xml is None:
        return Response(status_code=status.HTTP_404_NOT_FOUND)
    return Response(content=xml, media_type="application/xml")


@router.post("/logout/callback")
async def logout_callback(request: Request):
    """Back-channel logout from the IdP. Accepted but not processed."""
    client_host = request.client.host if request.client else None
    logger.info("sso_logout_callback", client=redact_ip(client_host))
    return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/logout")
async def logout(request: Request):
    """Evict the cached user, then end the session."""
    get_sso(request).logout(request)
    return RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)


@router.get("/me", response_model=UserRecord, response_model_by_alias=True)
async def me(user: UserRecord = Depends(ensure_authenticated)):
    """The current session principal."""
    return user
