"""Conversion between the session principal and what the session cookie stores."""

from typing import Any, Optional

from pydantic import ValidationError

from waad_sso.schemas.user import UserRecord
from waad_sso.services.identity.user_cache import UserCache


class SessionCodec:
    """Stores only the email; the record itself stays in the cache.

    The token is not signed here. Starlette's session cookie is.
    """

    def __init__(self, cache: UserCache) -> None:
        self.cache = cache

    def serialize(self, record: UserRecord) -> str:
        return record.email

    def deserialize(self, token: Any) -> Optional[UserRecord]:
        if not token or not isinstance(token, str):
            return None
        return self.cache.find_by_email(token)


class MockSessionCodec:
    """Mock mode: the whole record travels in the session."""

    def serialize(self, record: UserRecord) -> dict:
        return record.model_dump(by_alias=True)

    def deserialize(self, token: Any) -> Optional[UserRecord]:
        if not isinstance(token, dict):
            return None
        try:
            return UserRecord.model_validate(token)
        except ValidationError:
            return None
