from __future__ import annotations

import json

import jwt
import pytest
import requests

from opentok_server.common.errors import (
    ApiError,
    BadRequestError,
    ServerError,
    TransportError,
    UnexpectedResponseError,
)
from opentok_server.common.security import AUTH_HEADER, Credentials
from opentok_server.connectors.opentok.http import OpenTokHttpConnector

SECRET = "project-secret-0123456789abcdef0123"
_HTTP = "opentok_server.connectors.opentok.http.requests.request"


class _FakeResponse:
    def __init__(self, payload=None, *, status_code: int = 200, text: str | None = None):
        self.status_code = status_code
        if text is None:
            text = "" if payload is None else json.dumps(payload)
        self.text = text
        self.content = text.encode("utf-8")

    def json(self):
        return json.loads(self.text)


def _connector() -> OpenTokHttpConnector:
    return OpenTokHttpConnector(
        Credentials(api_key="12345", api_secret=SECRET),
        base_url="https://api.example.test/",
        timeout_sec=3,
    )


def test_request_sends_signed_headers_and_form(monkeypatch) -> None:
    calls: list[dict] = []

    def _fake_request(method, url, **kwargs):
        calls.append({"method": method, "url": url, **kwargs})
        return _FakeResponse([{"session_id": "abc"}])

    monkeypatch.setattr(_HTTP, _fake_request)

    data = _connector().request(
        "post",
        "/session/create",
        operation="create_session",
        form={"archiveMode": "manual", "p2p.preference": "disabled"},
    )

    assert data == [{"session_id": "abc"}]
    call = calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "https://api.example.test/session/create"
    assert call["data"] == {"archiveMode": "manual", "p2p.preference": "disabled"}
    assert call["json"] is None
    assert call["timeout"] == 3
    headers = call["headers"]
    assert headers["Accept"] == "application/json"
    assert "Content-Type" not in headers
    assert headers["User-Agent"].startswith("opentok-server-python/")
    claims = jwt.decode(headers[AUTH_HEADER], SECRET, algorithms=["HS256"])
    assert claims["iss"] == "12345"
    assert claims["ist"] == "project"


def test_json_body_sets_content_type(monkeypatch) -> None:
    captured: dict = {}

    def _fake_request(method, url, **kwargs):
        captured.update(kwargs)
        return _FakeResponse({"id": "a1"})

    monkeypatch.setattr(_HTTP, _fake_request)
    _connector().request(
        "POST",
        "/v2/project/12345/archive",
        operation="start_archive",
        json_body={"sessionId": "s1"},
    )
    assert captured["headers"]["Content-Type"] == "application/json"
    assert captured["json"] == {"sessionId": "s1"}


def test_empty_body_returns_none(monkeypatch) -> None:
    monkeypatch.setattr(_HTTP, lambda method, url, **kw: _FakeResponse(status_code=204))
    assert _connector().request("DELETE", "/v2/project/12345/archive/a1", operation="x") is None


@pytest.mark.parametrize(
    "status,err_cls,code",
    [
        (400, BadRequestError, "bad_request"),
        (403, BadRequestError, "bad_request"),
        (404, BadRequestError, "bad_request"),
        (500, ServerError, "server_error"),
        (503, ServerError, "server_error"),
    ],
)
def test_non_2xx_maps_to_typed_error(monkeypatch, status, err_cls, code) -> None:
    body = {"code": status, "message": "nope"}
    monkeypatch.setattr(
        _HTTP, lambda method, url, **kw: _FakeResponse(body, status_code=status)
    )
    with pytest.raises(err_cls) as exc:
        _connector().request("GET", "/v2/project/12345/archive/a1", operation="get_archive")
    assert exc.value.code == code
    assert exc.value.status_code == status
    assert exc.value.details["body"] == json.dumps(body)


def test_unexpected_status_maps_to_unknown_api_error(monkeypatch) -> None:
    monkeypatch.setattr(_HTTP, lambda method, url, **kw: _FakeResponse(status_code=302, text="moved"))
    with pytest.raises(ApiError) as exc:
        _connector().request("GET", "/x", operation="x")
    assert exc.value.code == "unknown"
    assert not isinstance(exc.value, (BadRequestError, ServerError))


def test_network_failure_maps_to_transport_error(monkeypatch) -> None:
    calls = {"count": 0}

    def _fake_request(method, url, **kwargs):
        calls["count"] += 1
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(_HTTP, _fake_request)
    with pytest.raises(TransportError) as exc:
        _connector().request("GET", "/x", operation="x")
    assert "connection refused" in exc.value.details["err"]
    # никаких повторов
    assert calls["count"] == 1


def test_invalid_json_maps_to_unexpected_response(monkeypatch) -> None:
    monkeypatch.setattr(_HTTP, lambda method, url, **kw: _FakeResponse(text="<html>oops</html>"))
    with pytest.raises(UnexpectedResponseError):
        _connector().request("GET", "/x", operation="x")
