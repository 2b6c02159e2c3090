"""
Azure AD Graph client.

Only the two calls the login pipeline needs:
- ``get_token``: client-credentials token for the tenant
- ``get_user``: user attributes plus group memberships (``memberOf``)
"""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from waad_sso.config import settings
from waad_sso.schemas.user import DirectoryProfile
from waad_sso.utils.logging_utils import redact_email

logger = logging.getLogger(__name__)


class GraphAPIError(Exception):
    """The directory service answered with an error or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GraphClient:
    """Async client for the directory-graph service.

    A new ``httpx.AsyncClient`` is opened per call; ``transport`` lets tests
    substitute ``httpx.MockTransport``.
    """

    def __init__(
        self,
        authority_host: Optional[str] = None,
        resource: Optional[str] = None,
        api_version: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.authority_host = (authority_host or settings.GRAPH_AUTHORITY_HOST).rstrip("/")
        self.resource = (resource or settings.GRAPH_RESOURCE).rstrip("/")
        self.api_version = api_version or settings.GRAPH_API_VERSION
        self.timeout = timeout if timeout is not None else settings.GRAPH_TIMEOUT_SECONDS
        self._transport = transport

    async def _request(self, method: str, url: str, **kwargs) -> dict:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as exc:
            raise GraphAPIError(
                f"{method} {exc.request.url.path} returned {exc.response.status_code}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise GraphAPIError(f"{method} {url} failed: {exc}") from exc
        except ValueError as exc:
            raise GraphAPIError(f"{method} {url} returned invalid JSON") from exc

    async def get_token(self, tenant: str, client_id: str, client_secret: str) -> str:
        """Acquire an app-only access token for the directory resource."""
        payload = await self._request(
            "POST",
            f"{self.authority_host}/{tenant}/oauth2/token",
            data={
                "grant_type": "client_credentials",
                "client_id": client_id,
                "client_secret": client_secret,
                "resource": self.resource,
            },
        )

        token = payload.get("access_token")
        if not token:
            raise GraphAPIError("Token response did not include an access_token")
        return token

    async def get_user(self, tenant: str, token: str, email: str) -> DirectoryProfile:
        """Fetch the directory user for ``email`` together with its groups."""
        user_url = f"{self.resource}/{tenant}/users/{quote(email, safe='@')}"
        headers = {"Authorization": f"Bearer {token}", "Accept": "application/json"}
        params = {"api-version": self.api_version}

        user = await self._request("GET", user_url, headers=headers, params=params)
        member_of = await self._request(
            "GET", f"{user_url}/memberOf", headers=headers, params=params
        )

        groups = [
            entry
            for entry in member_of.get("value", [])
            if entry.get("objectType", "Group") == "Group"
        ]
        logger.debug(
            "Directory returned %d group(s) for %s", len(groups), redact_email(email)
        )

        return DirectoryProfile.model_validate({**user, "groups": groups})
