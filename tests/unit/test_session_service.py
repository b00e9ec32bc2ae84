from __future__ import annotations

import pytest

from opentok_server.common.errors import UnexpectedResponseError, ValidationError
from opentok_server.contracts.opentok_api import SessionOptions, build_request
from opentok_server.domain.enums import ArchiveMode, MediaMode
from opentok_server.services import session_service


class _RecordingTransport:
    def __init__(self, response) -> None:
        self.response = response
        self.calls: list[dict] = []

    def request(self, method, path, *, operation, form=None, json_body=None, params=None):
        self.calls.append(
            {
                "method": method,
                "path": path,
                "operation": operation,
                "form": form,
                "json_body": json_body,
                "params": params,
            }
        )
        return self.response


def test_default_options_form() -> None:
    assert SessionOptions().to_form() == {"archiveMode": "manual", "p2p.preference": "disabled"}


def test_relayed_media_mode_enables_p2p() -> None:
    form = SessionOptions(media_mode=MediaMode.relayed).to_form()
    assert form["p2p.preference"] == "enabled"


def test_routed_always_archived_with_location() -> None:
    form = SessionOptions(
        media_mode=MediaMode.routed,
        archive_mode=ArchiveMode.always,
        location="12.34.56.78",
    ).to_form()
    assert form == {
        "archiveMode": "always",
        "p2p.preference": "disabled",
        "location": "12.34.56.78",
    }


def test_always_archive_requires_routed() -> None:
    with pytest.raises(ValidationError):
        build_request(SessionOptions, {"media_mode": "relayed", "archive_mode": "always"})


@pytest.mark.parametrize("location", ["not-an-ip", "::1", "300.1.1.1"])
def test_location_must_be_ipv4(location: str) -> None:
    with pytest.raises(ValidationError) as exc:
        build_request(SessionOptions, location=location)
    assert exc.value.details["errors"]


def test_parse_response_takes_single_session() -> None:
    session = session_service.parse_create_session_response(
        [{"session_id": "1_MX4xMjM0NX5-", "project_id": "12345", "create_dt": "now"}]
    )
    assert session.session_id == "1_MX4xMjM0NX5-"
    assert session.project_id == "12345"


@pytest.mark.parametrize(
    "payload",
    [
        [],
        [{"session_id": "a"}, {"session_id": "b"}],
        {"session_id": "a"},
        [{"sessionId": "a"}],
        [{"session_id": "  "}],
        None,
    ],
)
def test_parse_response_rejects_unexpected_shapes(payload) -> None:
    with pytest.raises(UnexpectedResponseError):
        session_service.parse_create_session_response(payload)


def test_create_session_posts_form_to_session_create() -> None:
    transport = _RecordingTransport([{"session_id": "sess-1"}])
    session = session_service.create_session(transport, {"media_mode": "routed"})

    assert session.session_id == "sess-1"
    call = transport.calls[0]
    assert call["method"] == "POST"
    assert call["path"] == "/session/create"
    assert call["operation"] == "create_session"
    assert call["form"] == {"archiveMode": "manual", "p2p.preference": "disabled"}
    assert call["json_body"] is None


def test_create_session_validates_before_network() -> None:
    transport = _RecordingTransport([{"session_id": "sess-1"}])
    with pytest.raises(ValidationError):
        session_service.create_session(transport, {"location": "nowhere"})
    assert transport.calls == []
