"""Resolution of a login assertion into the session principal."""

import asyncio
import logging

from waad_sso.schemas.user import UserRecord
from waad_sso.services.identity.base import RawProfile
from waad_sso.services.identity.enricher import DirectoryEnricher
from waad_sso.services.identity.errors import MissingEmail
from waad_sso.services.identity.user_cache import UserCache
from waad_sso.utils.logging_utils import redact_email

logger = logging.getLogger(__name__)


class IdentityResolver:
    """The SAML verify step: cached record, or enrich once and cache.

    Cached records are never refreshed, so the directory is queried at most
    once per email for the life of the process. Concurrent logins for the
    same unseen email wait on a per-email lock and reuse the first result.
    """

    def __init__(self, cache: UserCache, enricher: DirectoryEnricher) -> None:
        self.cache = cache
        self.enricher = enricher
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_holders: dict[str, int] = {}

    async def resolve(self, profile: RawProfile) -> UserRecord:
        """
        Return the principal for ``profile``.

        Raises:
            MissingEmail: the assertion has no email.
            EnrichmentError: the directory lookup failed; nothing is cached.
        """
        email = profile.email
        if not email:
            raise MissingEmail()

        cached = self.cache.find_by_email(email)
        if cached is not None:
            logger.debug("Cache hit for %s", redact_email(email))
            return cached

        lock = self._locks.setdefault(email, asyncio.Lock())
        self._lock_holders[email] = self._lock_holders.get(email, 0) + 1
        try:
            async with lock:
                # Another request may have finished while we waited
                cached = self.cache.find_by_email(email)
                if cached is not None:
                    return cached

                record = await self.enricher.enrich(profile)
                self.cache.insert(record)
                logger.info("Cached new user %s", redact_email(email))
                return record
        finally:
            # Drop the lock only once no request holds or waits on it
            self._lock_holders[email] -= 1
            if not self._lock_holders[email]:
                del self._lock_holders[email]
                del self._locks[email]
