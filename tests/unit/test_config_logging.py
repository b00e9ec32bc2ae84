from __future__ import annotations

import json
import logging

import pytest

from opentok_server.common.config import Settings
from opentok_server.common.logging import JsonFormatter


def test_settings_read_env(monkeypatch) -> None:
    monkeypatch.setenv("OPENTOK_API_KEY", "12345")
    monkeypatch.setenv("OPENTOK_TIMEOUT_SEC", "4")
    monkeypatch.setenv("OPENTOK_TOKEN_FORMAT", "t1")
    s = Settings()
    assert s.opentok_api_key == "12345"
    assert s.opentok_timeout_sec == 4
    assert s.opentok_token_format == "t1"
    assert s.opentok_api_url == "https://api.opentok.com"


def test_secret_file_override(monkeypatch, tmp_path) -> None:
    secret_file = tmp_path / "opentok_secret"
    secret_file.write_text("from-file\n", encoding="utf-8")
    monkeypatch.setenv("OPENTOK_API_SECRET", "from-env")
    monkeypatch.setenv("OPENTOK_API_SECRET_FILE", str(secret_file))

    assert Settings().opentok_api_secret == "from-file"


def test_missing_secret_file_fails_loudly(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("OPENTOK_API_SECRET_FILE", str(tmp_path / "missing"))
    with pytest.raises(RuntimeError):
        Settings()


def test_json_formatter_keeps_payload() -> None:
    record = logging.LogRecord(
        name="opentok-server",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="opentok_session_created",
        args=(),
        exc_info=None,
    )
    record.payload = {"session_id": "sess-1"}
    data = json.loads(JsonFormatter().format(record))
    assert data["msg"] == "opentok_session_created"
    assert data["level"] == "INFO"
    assert data["payload"] == {"session_id": "sess-1"}
    assert data["ts"].endswith("Z")
