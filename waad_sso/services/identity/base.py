"""Base types for the SSO identity pipeline."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional

from starlette.requests import Request


@dataclass
class RawProfile:
    """Claims delivered by the identity provider after a successful login.

    ``email`` is the only claim the pipeline requires. ``claims`` keeps the
    rest, keyed by UserRecord attribute name where the assertion supplies one
    (direct ADFS federation can deliver a complete profile here).
    """

    email: Optional[str]
    name_id: Optional[str] = None
    claims: dict[str, Any] = field(default_factory=dict)


class LoginStrategy(ABC):
    """The federated-login handshake, as seen by the login routes."""

    strategy_name: ClassVar[str]

    @abstractmethod
    async def login_redirect_url(self, request: Request, return_to: str) -> Optional[str]:
        """URL of the identity provider's sign-in page.

        ``None`` means no round trip is needed and the caller should
        authenticate immediately.
        """

    @abstractmethod
    async def authenticate(self, request: Request) -> RawProfile:
        """Validate the identity provider's response and return its claims.

        Raises:
            SamlValidationError: if the response is rejected.
        """

    async def metadata(self, request: Request) -> Optional[str]:
        """Service provider metadata XML, when the strategy publishes any."""
        return None
