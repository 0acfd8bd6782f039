import base64
import json
import sys
from pathlib import Path

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from jiraclient.client import Client, DecodeError, RequestError, TransportError
from jiraclient.config import ClientConfig
from jiraclient.models import User


def _client(handler, base_url: str = "https://jira.example.com", **kwargs) -> Client:
    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    return Client(base_url, http_client=http_client, **kwargs)


def test_empty_base_url_is_rejected():
    with pytest.raises(ValueError):
        Client("   ")


def test_new_request_joins_path_onto_base_url():
    client = _client(lambda request: httpx.Response(200))

    with_slash = client.new_request("GET", "/rest/api/2/myself")
    without_slash = client.new_request("GET", "rest/api/2/myself")

    assert str(with_slash.url) == "https://jira.example.com/rest/api/2/myself"
    assert str(without_slash.url) == "https://jira.example.com/rest/api/2/myself"
    assert with_slash.headers["Accept"] == "application/json"


def test_new_request_keeps_base_url_context_path():
    client = _client(lambda request: httpx.Response(200), base_url="https://example.com/jira/")

    request = client.new_request("GET", "rest/api/2/user?username=fred")

    assert str(request.url) == "https://example.com/jira/rest/api/2/user?username=fred"


def test_new_request_serializes_models_by_alias():
    client = _client(lambda request: httpx.Response(200))
    user = User(name="fred", email_address="fred@example.com", active=False, password="hunter2")

    request = client.new_request("POST", "rest/api/2/user", user)

    assert json.loads(request.content) == {"name": "fred", "emailAddress": "fred@example.com", "active": False}
    assert request.headers["Content-Type"] == "application/json"


def test_new_request_rejects_unserializable_body():
    client = _client(lambda request: httpx.Response(200))

    with pytest.raises(RequestError):
        client.new_request("POST", "rest/api/2/user", {"value": object()})


def test_new_request_rejects_invalid_url():
    client = _client(lambda request: httpx.Response(200), base_url="https://jira.example.com:notaport")

    with pytest.raises(RequestError):
        client.new_request("GET", "rest/api/2/myself")


def test_do_without_target_returns_response_only():
    client = _client(lambda request: httpx.Response(204))

    response, value = client.do(client.new_request("DELETE", "rest/api/2/user?username=fred"))

    assert response.status_code == 204
    assert value is None


def test_do_decodes_into_target():
    client = _client(lambda request: httpx.Response(200, json={"name": "fred"}))

    response, user = client.do(client.new_request("GET", "rest/api/2/myself"), User.from_payload)

    assert isinstance(user, User)
    assert user.name == "fred"
    assert response.headers["content-type"] == "application/json"


def test_do_populates_paging_values():
    payload = {"startAt": 50, "maxResults": 25, "total": 120, "values": []}
    client = _client(lambda request: httpx.Response(200, json=payload))

    response, values = client.do(client.new_request("GET", "rest/api/2/thing"), lambda data: data["values"])

    assert values == []
    assert (response.start_at, response.max_results, response.total) == (50, 25, 120)


def test_do_network_failure_has_no_response():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)

    with pytest.raises(TransportError) as excinfo:
        client.do(client.new_request("GET", "rest/api/2/myself"))

    assert excinfo.value.response is None
    assert "connection refused" in str(excinfo.value)


def test_do_error_status_carries_jira_messages():
    body = {"errorMessages": ["You are not authenticated."], "errors": {}}
    client = _client(lambda request: httpx.Response(401, json=body))

    with pytest.raises(TransportError) as excinfo:
        client.do(client.new_request("GET", "rest/api/2/myself"), User.from_payload)

    error = excinfo.value
    assert error.response.status_code == 401
    assert error.error_messages == ["You are not authenticated."]
    assert str(error).endswith("failed with status 401: You are not authenticated.")


def test_do_error_status_with_plain_text_body():
    client = _client(lambda request: httpx.Response(503, text="Service Unavailable"))

    with pytest.raises(TransportError) as excinfo:
        client.do(client.new_request("GET", "rest/api/2/myself"))

    assert excinfo.value.error_messages == ["Service Unavailable"]


def test_do_malformed_json_raises_decode_error():
    client = _client(lambda request: httpx.Response(200, text="<html>login</html>"))

    with pytest.raises(DecodeError) as excinfo:
        client.do(client.new_request("GET", "rest/api/2/myself"), User.from_payload)

    assert excinfo.value.response.status_code == 200
    assert "login" not in str(excinfo.value)


def test_do_mismatched_json_raises_decode_error():
    client = _client(lambda request: httpx.Response(200, json={"name": ["not", "a", "string"]}))

    with pytest.raises(DecodeError):
        client.do(client.new_request("GET", "rest/api/2/myself"), User.from_payload)


def test_bearer_token_is_sent():
    captured = {}

    def handler(request):
        captured["authorization"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"name": "bot"})

    client = _client(handler, token="pat-123")
    client.do(client.new_request("GET", "rest/api/2/myself"), User.from_payload)

    assert captured["authorization"] == "Bearer pat-123"


def test_from_config_uses_basic_auth():
    captured = {}

    def handler(request):
        captured["authorization"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"name": "bot"})

    config = ClientConfig(base_url="https://jira.example.com", username="bot", api_token="token")
    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    client = Client.from_config(config, http_client=http_client)

    client.do(client.new_request("GET", "rest/api/2/myself"), User.from_payload)

    expected = base64.b64encode(b"bot:token").decode("ascii")
    assert captured["authorization"] == f"Basic {expected}"


def test_close_leaves_injected_http_client_open():
    http_client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))

    with Client("https://jira.example.com", http_client=http_client):
        pass

    assert not http_client.is_closed


def test_close_shuts_owned_http_client():
    client = Client("https://jira.example.com")
    client.close()

    assert client._http.is_closed


def test_from_config_prefers_token_over_basic_credentials():
    captured = {}

    def handler(request):
        captured["authorization"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"name": "bot"})

    config = ClientConfig(
        base_url="https://jira.example.com",
        username="bot",
        api_token="secret",
        token="pat-123",
    )
    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    client = Client.from_config(config, http_client=http_client)

    client.do(client.new_request("GET", "rest/api/2/myself"), User.from_payload)

    assert captured["authorization"] == "Bearer pat-123"


def test_token_and_basic_auth_together_are_rejected():
    with pytest.raises(ValueError):
        Client("https://jira.example.com", auth=("bot", "secret"), token="pat-123")


def test_basic_auth_leaves_injected_http_client_untouched():
    captured = []

    def handler(request):
        captured.append(request.headers.get("Authorization"))
        return httpx.Response(200, json={"name": "bot"})

    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    client = Client("https://jira.example.com", auth=("bot", "secret"), http_client=http_client)

    client.do(client.new_request("GET", "rest/api/2/myself"), User.from_payload)
    http_client.get("https://jira.example.com/other")

    assert http_client.auth is None
    expected = base64.b64encode(b"bot:secret").decode("ascii")
    assert captured == [f"Basic {expected}", None]


def test_transport_options_with_injected_http_client_are_rejected():
    http_client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))

    with pytest.raises(ValueError):
        Client("https://jira.example.com", timeout=5.0, http_client=http_client)
    with pytest.raises(ValueError):
        Client("https://jira.example.com", verify=False, http_client=http_client)


def test_owned_http_client_uses_configured_timeout():
    config = ClientConfig(base_url="https://jira.example.com", timeout=7.5)

    with Client.from_config(config) as client:
        assert client._http.timeout.read == 7.5
