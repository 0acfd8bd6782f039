"""User endpoints of the Jira REST API.

Jira API docs: https://docs.atlassian.com/jira/REST/cloud/#api/2/user
"""

from __future__ import annotations

import json
import logging
from typing import List, Optional, Sequence, Tuple
from urllib.parse import urlencode

import httpx

from .client import Client, DecodeError, ReadError, Response
from .models import FindUsersOptions, User, UserGroup, groups_from_payload, users_from_payload

logger = logging.getLogger("jiraclient.users")

USER_ENDPOINT = "rest/api/2/user"
USER_SEARCH_ENDPOINT = "rest/api/2/user/search"
USER_GROUPS_ENDPOINT = "rest/api/2/user/groups"
MYSELF_ENDPOINT = "rest/api/2/myself"


def _with_query(path: str, params: Sequence[Tuple[str, str]]) -> str:
    return f"{path}?{urlencode(list(params))}"


class UserService:
    """Look up, create and search Jira users."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def get(self, username: str) -> Tuple[User, Response]:
        """Fetch a single user by username."""

        endpoint = _with_query(USER_ENDPOINT, [("username", username)])
        request = self._client.new_request("GET", endpoint)
        response, user = self._client.do(request, User.from_payload)
        return user, response

    def get_self(self) -> Tuple[User, Response]:
        """Fetch the user the client is authenticated as."""

        request = self._client.new_request("GET", MYSELF_ENDPOINT)
        response, user = self._client.do(request, User.from_payload)
        return user, response

    def create(self, user: User) -> Tuple[User, Response]:
        """Create a user and return the account as Jira stored it.

        The password is never serialized. Creating the same user twice is
        rejected by Jira.
        """

        request = self._client.new_request("POST", USER_ENDPOINT, user)
        response, _ = self._client.do(request)

        try:
            data = response.read()
        except httpx.StreamError as exc:
            raise ReadError("Could not read the returned data", response=response) from exc

        try:
            created = User.from_payload(json.loads(data))
        except (TypeError, ValueError) as exc:
            raise DecodeError("Could not decode the returned data into a user", response=response) from exc

        logger.info("Created Jira user %s", created.name or user.name)
        return created, response

    def delete(self, username: str) -> Response:
        """Delete a user by username."""

        endpoint = _with_query(USER_ENDPOINT, [("username", username)])
        request = self._client.new_request("DELETE", endpoint)
        response, _ = self._client.do(request)
        logger.info("Deleted Jira user %s", username)
        return response

    def get_groups(self, username: str) -> Tuple[List[UserGroup], Response]:
        """List the groups a user belongs to."""

        endpoint = _with_query(USER_GROUPS_ENDPOINT, [("username", username)])
        request = self._client.new_request("GET", endpoint)
        response, groups = self._client.do(request, groups_from_payload)
        return groups or [], response

    def find_users(
        self,
        username: str,
        options: Optional[FindUsersOptions] = None,
    ) -> Tuple[List[User], Response]:
        """Search users whose username, name or email matches ``username``.

        Only one page is fetched; advance ``options.start_at`` to read further.
        """

        params = [("username", username)]
        if options is not None:
            params.extend(options.to_query())

        request = self._client.new_request("GET", _with_query(USER_SEARCH_ENDPOINT, params))
        response, users = self._client.do(request, users_from_payload)
        return users or [], response


__all__ = [
    "MYSELF_ENDPOINT",
    "USER_ENDPOINT",
    "USER_GROUPS_ENDPOINT",
    "USER_SEARCH_ENDPOINT",
    "UserService",
]
