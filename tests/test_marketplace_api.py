import json

import pytest
import requests

from common.services.marketplace_api import ApiError, MarketplaceApiClient


class StubResponse:
    def __init__(self, status_code=200, body=None, raw=None):
        self.status_code = status_code
        if raw is not None:
            self.content = raw
        elif body is None:
            self.content = b""
        else:
            self.content = json.dumps(body).encode("utf-8")

    def json(self):
        return json.loads(self.content.decode("utf-8"))


class StubSession:
    def __init__(self, outcome):
        self.headers = {}
        self.outcome = outcome
        self.sent = []

    def request(self, method, url, **kwargs):
        self.sent.append((method, url, kwargs))
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def _client(outcome, token=None):
    session = StubSession(outcome)
    client = MarketplaceApiClient("http://api.test/api/", timeout=5, token_provider=lambda: token, session=session)
    return client, session


def test_sends_bearer_token_and_json_content_type():
    client, session = _client(StubResponse(200, [{"id": 1}]), token="tok")
    assert client.list_orders() == [{"id": 1}]

    method, url, kwargs = session.sent[0]
    assert (method, url) == ("GET", "http://api.test/api/orders")
    assert kwargs["headers"] == {"Authorization": "Bearer tok"}
    assert kwargs["timeout"] == 5
    assert session.headers["Content-Type"] == "application/json"


def test_no_token_no_authorization_header():
    client, session = _client(StubResponse(200, []))
    client.list_products({"search": "pot"})
    _, _, kwargs = session.sent[0]
    assert kwargs["headers"] == {}
    assert kwargs["params"] == {"search": "pot"}


def test_error_body_message_is_surfaced():
    client, _ = _client(StubResponse(403, {"error": "Artisan not verified"}))
    with pytest.raises(ApiError) as info:
        client.create_product({"name": "Vase"})
    assert info.value.message == "Artisan not verified"
    assert info.value.status_code == 403


def test_error_without_body_is_unknown():
    client, _ = _client(StubResponse(500, raw=b"<html>oops</html>"))
    with pytest.raises(ApiError) as info:
        client.analytics()
    assert info.value.message == "Unknown error"


def test_timeout_and_connection_errors():
    client, _ = _client(requests.exceptions.Timeout())
    with pytest.raises(ApiError) as info:
        client.get_product(3)
    assert info.value.status_code == 504

    client, _ = _client(requests.exceptions.ConnectionError())
    with pytest.raises(ApiError) as info:
        client.get_product(3)
    assert info.value.status_code == 502


def test_empty_body_is_empty_dict():
    client, _ = _client(StubResponse(200))
    assert client.verify_artisan(4) == {}


def test_malformed_json_raises():
    client, _ = _client(StubResponse(200, raw=b"{not json"))
    with pytest.raises(ApiError):
        client.list_categories()


def test_status_update_payload():
    client, session = _client(StubResponse(200, {"ok": True}))
    client.update_order_status(12, "shipping")
    method, url, kwargs = session.sent[0]
    assert (method, url) == ("PUT", "http://api.test/api/artisan/orders/12/status")
    assert kwargs["json"] == {"status": "shipping"}


def test_accept_video_call_route():
    client, session = _client(StubResponse(200, {"status": "accepted"}))
    client.accept_video_call(9)
    assert session.sent[0][:2] == ("PUT", "http://api.test/api/video-call/9/accept")
