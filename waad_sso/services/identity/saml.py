"""
SAML 2.0 login strategies.

``SamlStrategy`` delegates the protocol (AuthnRequest, signature and
condition checks) to python3-saml and only maps the validated assertion onto
a ``RawProfile``. python3-saml pulls in the native xmlsec binding, so it is
imported where it is used; mock mode never loads it.

``MockStrategy`` skips the identity provider altogether.
"""

import logging
from pathlib import Path
from typing import Any, Optional

from starlette.concurrency import run_in_threadpool
from starlette.requests import Request

from waad_sso.schemas.user import UserRecord
from waad_sso.services.identity.base import LoginStrategy, RawProfile
from waad_sso.services.identity.configuration import SSOConfiguration
from waad_sso.services.identity.errors import SamlValidationError

logger = logging.getLogger(__name__)

HTTP_POST_BINDING = "urn:oasis:names:tc:SAML:2.0:bindings:HTTP-POST"
HTTP_REDIRECT_BINDING = "urn:oasis:names:tc:SAML:2.0:bindings:HTTP-Redirect"
EMAIL_NAMEID_FORMAT = "urn:oasis:names:tc:SAML:1.1:nameid-format:emailAddress"

EMAIL_CLAIM = "http://schemas.xmlsoap.org/ws/2005/05/identity/claims/emailaddress"
UPN_CLAIM = "http://schemas.xmlsoap.org/ws/2005/05/identity/claims/name"

# Assertion attribute -> UserRecord field
CLAIM_MAP = {
    "http://schemas.xmlsoap.org/ws/2005/05/identity/claims/givenname": "given_name",
    "http://schemas.xmlsoap.org/ws/2005/05/identity/claims/surname": "surname",
    "http://schemas.microsoft.com/identity/claims/displayname": "display_name",
    "http://schemas.microsoft.com/identity/claims/objectidentifier": "object_id",
    "givenName": "given_name",
    "surname": "surname",
    "displayName": "display_name",
    "department": "department",
    "jobTitle": "job_title",
    "telephoneNumber": "telephone_number",
    "mobile": "mobile",
    "city": "city",
    "country": "country",
}
GROUPS_CLAIMS = ("groups", "http://schemas.microsoft.com/ws/2008/06/identity/claims/groups")


def _first(values: Any) -> Optional[str]:
    if isinstance(values, (list, tuple)):
        return values[0] if values else None
    return values


def profile_from_attributes(attributes: dict[str, list], name_id: Optional[str] = None) -> RawProfile:
    """Map validated assertion attributes onto a ``RawProfile``.

    The email comes from the emailaddress claim, then a plain ``email`` or
    ``mail`` attribute, then the UPN ``name`` claim.
    """
    email = None
    for claim in (EMAIL_CLAIM, "email", "mail", UPN_CLAIM):
        email = _first(attributes.get(claim))
        if email:
            break

    claims: dict[str, Any] = {}
    for attribute, field_name in CLAIM_MAP.items():
        value = _first(attributes.get(attribute))
        if value is not None and field_name not in claims:
            claims[field_name] = value

    for claim in GROUPS_CLAIMS:
        if claim in attributes:
            claims["groups"] = list(attributes[claim])
            break

    return RawProfile(email=email or None, name_id=name_id, claims=claims)


def build_sp_settings(configuration: SSOConfiguration, debug: bool = False) -> dict:
    """python3-saml settings for our side of the federation."""
    sp: dict[str, Any] = {
        "entityId": configuration.issuer,
        "assertionConsumerService": {
            "url": configuration.login_callback,
            "binding": HTTP_POST_BINDING,
        },
        "NameIDFormat": EMAIL_NAMEID_FORMAT,
        "x509cert": configuration.public_cert,
        "privateKey": configuration.private_cert,
    }
    if configuration.logout_callback:
        sp["singleLogoutService"] = {
            "url": configuration.logout_callback,
            "binding": HTTP_REDIRECT_BINDING,
        }

    return {
        "strict": True,
        "debug": debug,
        "sp": sp,
        "security": {
            "authnRequestsSigned": bool(configuration.private_cert),
            "wantAssertionsSigned": True,
        },
    }


async def prepare_request(request: Request) -> dict:
    """Translate a Starlette request into python3-saml's request dict."""
    post_data = {}
    if request.method == "POST":
        form = await request.form()
        post_data = {key: value for key, value in form.items()}

    forwarded_proto = request.headers.get("x-forwarded-proto")
    scheme = forwarded_proto or request.url.scheme

    return {
        "https": "on" if scheme == "https" else "off",
        "http_host": request.headers.get("x-forwarded-host") or request.url.hostname,
        "server_port": request.url.port,
        "script_name": request.url.path,
        "get_data": dict(request.query_params),
        "post_data": post_data,
    }


class SamlStrategy(LoginStrategy):
    """SAML-P against Azure AD / ADFS.

    IdP metadata is fetched once, on the first login, and kept for the life
    of the process.
    """

    strategy_name = "saml"

    def __init__(self, configuration: SSOConfiguration, debug: bool = False) -> None:
        self.configuration = configuration
        self.debug = debug
        self._settings: Optional[dict] = None

    async def _get_settings(self) -> dict:
        from onelogin.saml2.idp_metadata_parser import OneLogin_Saml2_IdPMetadataParser

        if self._settings is None:
            source = self.configuration.identity_metadata
            if source.startswith(("http://", "https://")):
                idp_data = await run_in_threadpool(OneLogin_Saml2_IdPMetadataParser.parse_remote, source)
            else:
                xml = await run_in_threadpool(Path(source).read_text, encoding="utf-8")
                idp_data = OneLogin_Saml2_IdPMetadataParser.parse(xml)
            self._settings = OneLogin_Saml2_IdPMetadataParser.merge_settings(
                build_sp_settings(self.configuration, self.debug), idp_data
            )
            logger.info("Loaded IdP metadata from %s", source)
        return self._settings

    async def _auth(self, request: Request):
        from onelogin.saml2.auth import OneLogin_Saml2_Auth

        return OneLogin_Saml2_Auth(await prepare_request(request), await self._get_settings())

    async def login_redirect_url(self, request: Request, return_to: str) -> Optional[str]:
        auth = await self._auth(request)
        return auth.login(return_to=return_to)

    async def authenticate(self, request: Request) -> RawProfile:
        auth = await self._auth(request)
        auth.process_response()

        errors = auth.get_errors()
        if errors:
            raise SamlValidationError(errors, auth.get_last_error_reason())
        if not auth.is_authenticated():
            raise SamlValidationError(["not_authenticated"])

        return profile_from_attributes(auth.get_attributes(), auth.get_nameid())

    async def metadata(self, request: Request) -> Optional[str]:
        from onelogin.saml2.settings import OneLogin_Saml2_Settings

        saml_settings = OneLogin_Saml2_Settings(
            build_sp_settings(self.configuration, self.debug), sp_validation_only=True
        )
        metadata = saml_settings.get_sp_metadata()
        errors = saml_settings.validate_metadata(metadata)
        if errors:
            raise SamlValidationError(list(errors), "invalid service provider metadata")
        return metadata.decode("utf-8") if isinstance(metadata, bytes) else metadata


class MockStrategy(LoginStrategy):
    """Authenticates every login attempt as a fixed user. Never for production."""

    strategy_name = "mock"

    def __init__(self, user: UserRecord) -> None:
        self.user = user

    async def login_redirect_url(self, request: Request, return_to: str) -> Optional[str]:
        return None

    async def authenticate(self, request: Request) -> RawProfile:
        return RawProfile(
            email=self.user.email,
            claims={"groups": [group.name for group in self.user.groups]},
        )
