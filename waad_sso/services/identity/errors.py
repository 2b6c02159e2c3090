"""Exceptions raised by the SSO identity pipeline."""

import enum
from typing import Callable, Optional


class ConstructionFailure(str, enum.Enum):
    """Why an ``SSOAuthenticator`` could not be built."""

    MISSING_CONFIGURATION_FILE = "missing_configuration_file"
    MISSING_SESSION_SECRET = "missing_session_secret"
    MISSING_APP = "missing_app"
    MISSING_SERVICE_NAME = "missing_service_name"
    INVALID_CONFIGURATION = "invalid_configuration"
    UNREADABLE_PRIVATE_CERT = "unreadable_private_cert"
    UNREADABLE_PUBLIC_CERT = "unreadable_public_cert"
    MOCK_MODE_IN_PRODUCTION = "mock_mode_in_production"


class ConstructionError(Exception):
    """Raised at startup when the SSO layer cannot be set up. Not recoverable."""

    def __init__(self, reason: ConstructionFailure, message: str):
        super().__init__(message)
        self.reason = reason


class ResolutionError(Exception):
    """A login assertion could not be turned into a session principal."""

    pass


class MissingEmail(ResolutionError):
    """The assertion carried no email claim."""

    def __init__(self, message: str = "No email found"):
        super().__init__(message)


class EnrichmentError(ResolutionError):
    """Token acquisition or the directory lookup failed.

    ``stage`` is ``"token"`` or ``"user"``.
    """

    def __init__(self, stage: str, cause: Optional[BaseException] = None):
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Directory enrichment failed at {stage} stage{detail}")
        self.stage = stage
        self.cause = cause


class SamlValidationError(Exception):
    """The identity provider's response was rejected by the SAML toolkit."""

    def __init__(self, errors: list[str], reason: Optional[str] = None):
        message = ", ".join(errors) or "invalid SAML response"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.errors = errors
        self.reason = reason


class Unauthorized(Exception):
    """Raised by the authorization dependencies; converted into a response by the app."""

    def __init__(
        self,
        authenticated: bool,
        group: Optional[str] = None,
        on_failure: Optional[Callable] = None,
    ):
        if not authenticated:
            message = "Not authenticated"
        else:
            message = f"Not a member of {group!r}"
        super().__init__(message)
        self.authenticated = authenticated
        self.group = group
        self.on_failure = on_failure
