"""Typed client for the Jira REST API user endpoints."""

from __future__ import annotations

from .client import Client, DecodeError, JiraError, ReadError, RequestError, Response, TransportError
from .config import ClientConfig, load_client_config, resolve_config_path
from .models import AvatarUrls, FindUsersOptions, User, UserGroup
from .users import UserService

__all__ = [
    "AvatarUrls",
    "Client",
    "ClientConfig",
    "DecodeError",
    "FindUsersOptions",
    "JiraError",
    "ReadError",
    "RequestError",
    "Response",
    "TransportError",
    "User",
    "UserGroup",
    "UserService",
    "load_client_config",
    "resolve_config_path",
]
