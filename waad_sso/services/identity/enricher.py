"""Directory enrichment of a bare login assertion."""

import logging

from waad_sso.schemas.user import (
    ATTRIBUTE_FIELDS,
    DirectoryProfile,
    GroupMembership,
    UserRecord,
)
from waad_sso.services.identity.base import RawProfile
from waad_sso.services.identity.configuration import SSOConfiguration
from waad_sso.services.identity.errors import EnrichmentError
from waad_sso.services.identity.graph import GraphClient
from waad_sso.utils.logging_utils import redact_email

logger = logging.getLogger(__name__)


def normalize(email: str, directory: DirectoryProfile) -> UserRecord:
    """Flatten a directory profile into a session record.

    ``email`` is taken from the assertion, not the directory. Groups keep the
    directory's order.
    """
    attributes = {name: getattr(directory, name) for name in ATTRIBUTE_FIELDS}
    return UserRecord(
        email=email,
        groups=[GroupMembership(name=group.display_name) for group in directory.groups],
        **attributes,
    )


def profile_to_record(profile: RawProfile) -> UserRecord:
    """Use the assertion's own claims as the record (no directory available)."""
    claims = profile.claims
    attributes = {name: claims[name] for name in ATTRIBUTE_FIELDS if name in claims}

    groups = []
    for group in claims.get("groups") or []:
        if isinstance(group, dict):
            groups.append(GroupMembership(name=group.get("name") or group.get("displayName")))
        else:
            groups.append(GroupMembership(name=str(group)))

    return UserRecord(email=profile.email, groups=groups, **attributes)


class DirectoryEnricher:
    """Turns an assertion into a full ``UserRecord``.

    With a client secret configured this costs two sequential remote calls
    (token, then user). Without one the directory has nothing to add and the
    assertion's claims are used as they are.
    """

    def __init__(self, configuration: SSOConfiguration, graph_client: GraphClient) -> None:
        self.configuration = configuration
        self.graph_client = graph_client

    async def enrich(self, profile: RawProfile) -> UserRecord:
        """
        Build the record for ``profile``.

        Raises:
            EnrichmentError: token acquisition or the user lookup failed.
        """
        config = self.configuration

        if not config.directory_enabled:
            logger.debug(
                "No client secret configured, using assertion claims for %s",
                redact_email(profile.email),
            )
            return profile_to_record(profile)

        try:
            token = await self.graph_client.get_token(
                config.tenant, config.client_id, config.client_secret
            )
        except Exception as exc:
            raise EnrichmentError("token", exc) from exc

        try:
            directory = await self.graph_client.get_user(config.tenant, token, profile.email)
        except Exception as exc:
            raise EnrichmentError("user", exc) from exc

        record = normalize(profile.email, directory)
        logger.info(
            "Enriched %s from directory (%d group(s))",
            redact_email(profile.email),
            len(record.groups),
        )
        return record
