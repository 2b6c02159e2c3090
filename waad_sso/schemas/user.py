"""User and directory Pydantic schemas."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Directory payloads and the session record use camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DirectoryAttributes(CamelModel):
    """Attribute fields shared by the directory profile and the user record."""

    object_id: Optional[str] = None
    account_enabled: Optional[bool] = None
    city: Optional[str] = None
    country: Optional[str] = None
    department: Optional[str] = None
    display_name: Optional[str] = None
    facsimile_telephone_number: Optional[str] = None
    given_name: Optional[str] = None
    job_title: Optional[str] = None
    mobile: Optional[str] = None
    postal_code: Optional[str] = None
    preferred_language: Optional[str] = None
    state: Optional[str] = None
    street_address: Optional[str] = None
    surname: Optional[str] = None
    telephone_number: Optional[str] = None
    thumbnail_photo: Optional[Any] = None


ATTRIBUTE_FIELDS = tuple(DirectoryAttributes.model_fields)


class DirectoryGroup(CamelModel):
    """A group object as returned by the directory's memberOf listing."""

    model_config = ConfigDict(extra="allow")

    object_id: Optional[str] = None
    display_name: Optional[str] = None


class DirectoryProfile(DirectoryAttributes):
    """Raw directory user. Unknown provider fields are kept, not rejected."""

    model_config = ConfigDict(extra="allow")

    mail: Optional[str] = None
    user_principal_name: Optional[str] = None
    groups: list[DirectoryGroup] = Field(default_factory=list)


class GroupMembership(BaseModel):
    """Flattened group entry carried by the session principal."""

    name: Optional[str] = None


class UserRecord(DirectoryAttributes):
    """
    Resolved, normalized identity: the session principal.

    ``email`` comes from the login assertion and is the cache key.
    """

    email: str
    groups: list[GroupMembership] = Field(default_factory=list)

    @property
    def group_names(self) -> list[Optional[str]]:
        return [group.name for group in self.groups]
