"""SSO identity package: SAML login, directory enrichment, session principals."""

from waad_sso.services.identity.base import LoginStrategy, RawProfile
from waad_sso.services.identity.configuration import SSOConfiguration, load_configuration
from waad_sso.services.identity.enricher import DirectoryEnricher
from waad_sso.services.identity.errors import (
    ConstructionError,
    ConstructionFailure,
    EnrichmentError,
    MissingEmail,
    ResolutionError,
    SamlValidationError,
    Unauthorized,
)
from waad_sso.services.identity.gate import AuthorizationGate, is_member
from waad_sso.services.identity.graph import GraphAPIError, GraphClient
from waad_sso.services.identity.resolver import IdentityResolver
from waad_sso.services.identity.saml import MockStrategy, SamlStrategy
from waad_sso.services.identity.session_codec import MockSessionCodec, SessionCodec
from waad_sso.services.identity.user_cache import UserCache

__all__ = [
    "AuthorizationGate",
    "ConstructionError",
    "ConstructionFailure",
    "DirectoryEnricher",
    "EnrichmentError",
    "GraphAPIError",
    "GraphClient",
    "IdentityResolver",
    "LoginStrategy",
    "MissingEmail",
    "MockSessionCodec",
    "MockStrategy",
    "RawProfile",
    "ResolutionError",
    "SSOConfiguration",
    "SamlStrategy",
    "SamlValidationError",
    "SessionCodec",
    "Unauthorized",
    "UserCache",
    "is_member",
    "load_configuration",
]
