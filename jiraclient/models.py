"""Data transfer objects for the Jira user endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class AvatarUrls(BaseModel):
    """Avatar image URLs keyed by size."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    size_48: Optional[str] = Field(default=None, alias="48x48")
    size_32: Optional[str] = Field(default=None, alias="32x32")
    size_24: Optional[str] = Field(default=None, alias="24x24")
    size_16: Optional[str] = Field(default=None, alias="16x16")


class User(BaseModel):
    """Represents a Jira user account.

    ``password`` is only used when creating users locally and is never
    written to, or read from, the wire.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    self_url: Optional[str] = Field(default=None, alias="self")
    name: Optional[str] = None
    password: Optional[str] = Field(default=None, exclude=True, repr=False)
    key: Optional[str] = None
    email_address: Optional[str] = Field(default=None, alias="emailAddress")
    avatar_urls: Optional[AvatarUrls] = Field(default=None, alias="avatarUrls")
    display_name: Optional[str] = Field(default=None, alias="displayName")
    active: Optional[bool] = None
    time_zone: Optional[str] = Field(default=None, alias="timeZone")
    application_keys: Optional[List[str]] = Field(default=None, alias="applicationKeys")

    @classmethod
    def from_payload(cls, payload: Any) -> "User":
        payload = _without_password(payload)
        return cls.model_validate(payload)


class UserGroup(BaseModel):
    """A group a user belongs to."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    name: str
    self_url: Optional[str] = Field(default=None, alias="self")


@dataclass(frozen=True)
class FindUsersOptions:
    """Optional parameters accepted by the user search endpoint.

    Every field is sent when an options object is supplied; omit the object
    entirely to let Jira apply its own defaults (``maxResults=50``,
    ``includeActive=true``, ``includeInactive=false``).
    """

    start_at: int = 0
    max_results: int = 0
    include_active: bool = False
    include_inactive: bool = False
    # Property key cannot contain dot or equal sign, e.g. propertyKey.something.nested=1
    property: str = ""

    def to_query(self) -> List[tuple]:
        return [
            ("startAt", str(self.start_at)),
            ("maxResults", str(self.max_results)),
            ("includeActive", _format_bool(self.include_active)),
            ("includeInactive", _format_bool(self.include_inactive)),
            ("Property", self.property),
        ]


def dump_model(model: BaseModel) -> dict:
    """Return the wire representation of a model, leaving out unset fields."""
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


_USER_LIST = TypeAdapter(List[User])
_GROUP_LIST = TypeAdapter(List[UserGroup])


def users_from_payload(payload: Any) -> List[User]:
    if isinstance(payload, list):
        payload = [_without_password(item) for item in payload]
    return _USER_LIST.validate_python(payload)


def groups_from_payload(payload: Any) -> List[UserGroup]:
    return _GROUP_LIST.validate_python(payload)


def _without_password(payload: Any) -> Any:
    if isinstance(payload, dict) and "password" in payload:
        return {key: value for key, value in payload.items() if key != "password"}
    return payload


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


__all__ = [
    "AvatarUrls",
    "FindUsersOptions",
    "User",
    "UserGroup",
    "dump_model",
    "groups_from_payload",
    "users_from_payload",
]
