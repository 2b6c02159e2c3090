"""FastAPI main application."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request

from waad_sso.api.v1.auth import SESSION_FLASH_KEY
from waad_sso.config import Settings, settings
from waad_sso.core.logging_config import setup_logging
from waad_sso.dependencies import get_current_user, get_sso
from waad_sso.middleware.error_handler import ErrorHandlerMiddleware
from waad_sso.schemas.user import UserRecord
from waad_sso.services.identity.lifecycle import SSOAuthenticator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging()
    sso = app.state.sso
    logger.info(
        "%s started (service=%s, mock=%s)", app.title, sso.name, sso.mock_mode
    )
    yield
    logger.info("%s shutting down with %d cached user(s)", app.title, len(sso.cache))


def create_app(config: Optional[Settings] = None, **sso_options) -> FastAPI:
    """Build the application and its SSO layer.

    ``sso_options`` are passed to ``SSOAuthenticator`` (e.g. a custom
    ``graph_client`` or ``strategy``).

    Raises:
        ConstructionError: if the SSO layer cannot be set up.
    """
    config = config or settings

    app = FastAPI(
        title=config.APP_NAME,
        version=config.APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if config.DEBUG else None,
        redoc_url=None,
        openapi_url="/openapi.json" if config.DEBUG else None,
    )

    app.add_middleware(ErrorHandlerMiddleware)

    sso = SSOAuthenticator(
        app=app,
        name=config.SSO_SERVICE_NAME,
        configuration_file=config.SSO_CONFIG_FILE,
        session_secret=config.SESSION_SECRET,
        failure_redirect=config.LOGIN_FAILURE_REDIRECT,
        config=config,
        **sso_options,
    )
    # SSO routes first: registration order matters
    sso.set_sso_routes()

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/")
    async def home(request: Request, user: Optional[UserRecord] = Depends(get_current_user)):
        flash = request.session.pop(SESSION_FLASH_KEY, None)
        return {
            "authenticated": user is not None,
            "email": user.email if user else None,
            "mock": get_sso(request).mock_mode,
            "flash": flash,
        }

    return app
