"""
SSO composition root.

``SSOAuthenticator`` owns the user cache and wires the resolver, session
codec, authorization gate and login strategy into a FastAPI application.

Usage:
    app = FastAPI()
    sso = SSOAuthenticator(
        app=app,
        name="waad",
        configuration_file="config/sso.json",
        session_secret=settings.SESSION_SECRET,
    )
    sso.set_sso_routes()  # before any catch-all routes
"""

import logging
from pathlib import Path
from typing import Optional, Union

from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware
from starlette.requests import Request

from waad_sso.api.v1.auth import router as sso_router
from waad_sso.config import Settings, settings
from waad_sso.schemas.user import UserRecord
from waad_sso.services.identity.base import LoginStrategy
from waad_sso.services.identity.configuration import SSOConfiguration, load_configuration
from waad_sso.services.identity.enricher import DirectoryEnricher, profile_to_record
from waad_sso.services.identity.errors import (
    ConstructionError,
    ConstructionFailure,
    Unauthorized,
)
from waad_sso.services.identity.gate import AuthorizationGate
from waad_sso.services.identity.graph import GraphClient
from waad_sso.services.identity.resolver import IdentityResolver
from waad_sso.services.identity.saml import MockStrategy, SamlStrategy
from waad_sso.services.identity.session_codec import MockSessionCodec, SessionCodec
from waad_sso.services.identity.user_cache import UserCache
from waad_sso.utils.logging_utils import redact_email

logger = logging.getLogger(__name__)

MOCK_SERVICE_NAME = "test"
SESSION_USER_KEY = "sso_user"

# Logged in by mock mode; handy locally when you don't want to touch AD.
MOCK_USER = UserRecord(email="notArealUser@somewhere.com", groups=[])


class SSOAuthenticator:
    """Login, session and authorization plumbing for one SSO service."""

    def __init__(
        self,
        app: Optional[FastAPI],
        name: Optional[str],
        configuration_file: Optional[Union[str, Path]],
        session_secret: Optional[str],
        *,
        graph_client: Optional[GraphClient] = None,
        strategy: Optional[LoginStrategy] = None,
        failure_redirect: Optional[str] = None,
        config: Optional[Settings] = None,
    ) -> None:
        if not configuration_file:
            raise ConstructionError(
                ConstructionFailure.MISSING_CONFIGURATION_FILE, "Missing configuration file!"
            )
        if not session_secret:
            raise ConstructionError(
                ConstructionFailure.MISSING_SESSION_SECRET,
                "Missing session secret, cannot set up the session layer!",
            )
        if app is None:
            raise ConstructionError(ConstructionFailure.MISSING_APP, "You must pass the app object!")
        if not name:
            raise ConstructionError(
                ConstructionFailure.MISSING_SERVICE_NAME, "You must pass the name of this service!"
            )

        self.app = app
        self.name = name
        self.mock_mode = name == MOCK_SERVICE_NAME
        self.config = config = config or settings
        self.failure_redirect = failure_redirect or config.LOGIN_FAILURE_REDIRECT

        if self.mock_mode and config.is_production:
            raise ConstructionError(
                ConstructionFailure.MOCK_MODE_IN_PRODUCTION,
                "Mock login cannot run in production",
            )

        self.configuration: SSOConfiguration = load_configuration(configuration_file)
        self.cache = UserCache()
        self.gate = AuthorizationGate()

        if self.mock_mode:
            logger.warning("Running in test mode - real auth disabled")
            self.strategy: LoginStrategy = strategy or MockStrategy(MOCK_USER)
            self.codec: Union[SessionCodec, MockSessionCodec] = MockSessionCodec()
            self.resolver: Optional[IdentityResolver] = None
        else:
            logger.info("Setting up SAML strategy for %s", self.configuration.issuer)
            self.strategy = strategy or SamlStrategy(self.configuration, debug=config.DEBUG)
            self.codec = SessionCodec(self.cache)
            if graph_client is None:
                graph_client = GraphClient(
                    authority_host=config.GRAPH_AUTHORITY_HOST,
                    resource=config.GRAPH_RESOURCE,
                    api_version=config.GRAPH_API_VERSION,
                    timeout=config.GRAPH_TIMEOUT_SECONDS,
                )
            enricher = DirectoryEnricher(self.configuration, graph_client)
            self.resolver = IdentityResolver(self.cache, enricher)

        app.add_middleware(
            SessionMiddleware,
            secret_key=session_secret,
            session_cookie=config.SESSION_COOKIE,
            max_age=config.SESSION_MAX_AGE,
            same_site="lax",
            https_only=config.is_production,
        )
        app.add_exception_handler(Unauthorized, self.gate.handle_failure)
        app.state.sso = self

    # ------------------------------------------------------------------
    # Login / session
    # ------------------------------------------------------------------

    async def login(self, request: Request) -> UserRecord:
        """Validate the identity provider's response and start a session.

        Raises:
            SamlValidationError: the assertion was rejected.
            ResolutionError: no usable principal could be built.
        """
        profile = await self.strategy.authenticate(request)

        if self.mock_mode:
            user = profile_to_record(profile)
        else:
            user = await self.resolver.resolve(profile)

        request.session[SESSION_USER_KEY] = self.codec.serialize(user)
        return user

    def current_user(self, request: Request) -> Optional[UserRecord]:
        """The session principal, or ``None`` when the request is anonymous."""
        token = request.session.get(SESSION_USER_KEY)
        if token is None:
            return None
        return self.codec.deserialize(token)

    def is_authenticated(self, request: Request) -> bool:
        return self.current_user(request) is not None

    def logout(self, request: Request) -> None:
        """Evict the principal from the cache, then clear the host session.

        The order matters: once the session is cleared the email is gone.
        """
        user = self.current_user(request)
        if user is not None:
            removed = self.cache.remove_all_matching(user.email)
            logger.info("Logged out %s (%d cached record(s) evicted)", redact_email(user.email), removed)
        request.session.clear()

    def set_sso_routes(self) -> None:
        """Register the login/logout routes.

        Call this before registering catch-all routes; registration order
        decides which route wins.
        """
        logger.info("Setting up SSO routes")
        self.app.include_router(sso_router)
