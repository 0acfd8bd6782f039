"""HTTP client shared by the Jira API services."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar, Union

import httpx
from pydantic import BaseModel

from .config import ClientConfig
from .models import dump_model

logger = logging.getLogger("jiraclient.client")

T = TypeVar("T")

AuthType = Union[Tuple[str, str], httpx.Auth, None]


class JiraError(RuntimeError):
    """Base class for failures talking to Jira."""

    def __init__(self, message: str, *, response: "Response | None" = None) -> None:
        super().__init__(message)
        self.response = response


class RequestError(JiraError):
    """Raised when an outgoing request cannot be constructed."""


class TransportError(JiraError):
    """Raised when Jira cannot be reached or answers with an error status."""

    def __init__(
        self,
        message: str,
        *,
        response: "Response | None" = None,
        error_messages: Optional[List[str]] = None,
        errors: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(message, response=response)
        self.error_messages = error_messages or []
        self.errors = errors or {}


class ReadError(JiraError):
    """Raised when a response body cannot be consumed."""


class DecodeError(JiraError):
    """Raised when a response body is not the JSON shape that was expected."""


class Response:
    """Transport metadata for a completed Jira round trip.

    Paging fields are filled in when the decoded body is a JSON object
    carrying ``startAt``/``maxResults``/``total``; they stay ``0`` otherwise.
    """

    def __init__(self, http_response: httpx.Response) -> None:
        self.http_response = http_response
        self.start_at = 0
        self.max_results = 0
        self.total = 0

    @property
    def status_code(self) -> int:
        return self.http_response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self.http_response.headers

    @property
    def url(self) -> httpx.URL:
        return self.http_response.request.url

    def read(self) -> bytes:
        return self.http_response.read()

    def populate_page_values(self, payload: Any) -> None:
        if not isinstance(payload, dict):
            return
        for key, attribute in (("startAt", "start_at"), ("maxResults", "max_results"), ("total", "total")):
            value = payload.get(key)
            if isinstance(value, int) and not isinstance(value, bool):
                setattr(self, attribute, value)

    def __repr__(self) -> str:
        return f"<Response [{self.status_code}] {self.url}>"


def _normalize_base_url(base_url: str) -> str:
    cleaned = (base_url or "").strip()
    if not cleaned:
        raise ValueError("Jira base URL must not be empty")
    return cleaned.rstrip("/")


def _build_endpoint(base_url: str, path: str) -> str:
    if not path.startswith("/"):
        path = "/" + path
    return f"{base_url}{path}"


def _serialize_body(body: Any) -> Any:
    if isinstance(body, BaseModel):
        return dump_model(body)
    return body


def _extract_error_details(payload: object) -> Tuple[List[str], Dict[str, str]]:
    messages: List[str] = []
    errors: Dict[str, str] = {}
    if isinstance(payload, dict):
        raw_messages = payload.get("errorMessages")
        if isinstance(raw_messages, list):
            messages = [str(item).strip() for item in raw_messages if str(item).strip()]
        raw_errors = payload.get("errors")
        if isinstance(raw_errors, dict):
            errors = {str(key): str(value) for key, value in raw_errors.items()}
        if not messages:
            for key in ("message", "detail", "error"):
                value = payload.get(key)
                if isinstance(value, str) and value.strip():
                    messages = [value.strip()]
                    break
    elif isinstance(payload, str) and payload.strip():
        messages = [payload.strip()]
    return messages, errors


class Client:
    """Synchronous Jira REST client.

    The client owns the base URL, authentication and transport. Pass an
    existing ``httpx.Client`` through ``http_client`` to control pooling or
    transports yourself; it will not be closed by :meth:`close`.
    """

    def __init__(
        self,
        base_url: str,
        *,
        auth: AuthType = None,
        token: str | None = None,
        timeout: float | None = None,
        verify: Union[bool, str, None] = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        if token and auth is not None:
            raise ValueError("Provide either a bearer token or basic auth credentials, not both")

        self.base_url = _normalize_base_url(base_url)
        self._headers = {"Accept": "application/json"}
        if token:
            self._headers["Authorization"] = f"Bearer {token.strip()}"
        # Sent per request so an injected client keeps its own auth.
        self._auth = auth

        if http_client is None:
            self._http = httpx.Client(
                timeout=30.0 if timeout is None else timeout,
                verify=True if verify is None else verify,
            )
            self._owns_http = True
        else:
            if timeout is not None or verify is not None:
                raise ValueError("timeout and verify must be configured on the injected http_client")
            self._http = http_client
            self._owns_http = False

    @classmethod
    def from_config(cls, config: ClientConfig, *, http_client: httpx.Client | None = None) -> "Client":
        auth: AuthType = None
        if not config.token and config.username and config.api_token:
            auth = (config.username, config.api_token)
        transport_options: Dict[str, Any] = {}
        if http_client is None:
            transport_options = {"timeout": config.timeout, "verify": config.verify}
        return cls(
            config.base_url,
            auth=auth,
            token=config.token,
            http_client=http_client,
            **transport_options,
        )

    def new_request(self, method: str, path: str, body: Any = None) -> httpx.Request:
        """Build a request for ``path`` relative to the base URL."""

        url = _build_endpoint(self.base_url, path)
        headers = dict(self._headers)
        try:
            if body is None:
                return self._http.build_request(method, url, headers=headers)
            return self._http.build_request(method, url, json=_serialize_body(body), headers=headers)
        except httpx.InvalidURL as exc:
            raise RequestError(f"Invalid Jira request URL {url!r}: {exc}") from exc
        except (TypeError, ValueError) as exc:
            raise RequestError(f"Unable to encode request body for {method} {path}: {exc}") from exc

    def do(
        self,
        request: httpx.Request,
        target: Callable[[Any], T] | None = None,
    ) -> Tuple[Response, Optional[T]]:
        """Send ``request`` and optionally decode its JSON body with ``target``."""

        logger.debug("%s %s", request.method, request.url)
        try:
            if self._auth is None:
                http_response = self._http.send(request)
            else:
                http_response = self._http.send(request, auth=self._auth)
        except httpx.RequestError as exc:
            logger.warning("Request %s %s failed: %s", request.method, request.url, exc)
            raise TransportError(f"Failed to contact Jira at {request.url}: {exc}") from exc

        response = Response(http_response)
        self._check_response(response)

        if target is None:
            return response, None

        try:
            payload = http_response.json()
        except ValueError as exc:
            raise DecodeError("Jira returned a response that is not valid JSON", response=response) from exc

        response.populate_page_values(payload)
        try:
            value = target(payload)
        except (TypeError, ValueError) as exc:
            raise DecodeError("Jira returned an unexpected response payload", response=response) from exc
        return response, value

    @staticmethod
    def _check_response(response: Response) -> None:
        if 200 <= response.status_code < 300:
            return

        try:
            parsed: object = response.http_response.json()
        except ValueError:
            parsed = response.http_response.text
        messages, errors = _extract_error_details(parsed)

        message = f"Request to {response.url} failed with status {response.status_code}"
        details = list(messages) + [f"{field}: {text}" for field, text in errors.items()]
        if details:
            message = f"{message}: {'; '.join(details)}"

        logger.warning("Jira responded with %s for %s", response.status_code, response.url)
        raise TransportError(message, response=response, error_messages=messages, errors=errors)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *_exc_info: object) -> None:
        self.close()


__all__ = [
    "Client",
    "DecodeError",
    "JiraError",
    "ReadError",
    "RequestError",
    "Response",
    "TransportError",
]
