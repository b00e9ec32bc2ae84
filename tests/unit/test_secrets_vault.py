from __future__ import annotations

import os

import pytest

from opentok_server.common.secrets import maybe_load_external_secrets


class _FakeResponse:
    def __init__(self, payload: dict, status: int = 200) -> None:
        self._payload = payload
        self.status_code = status

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise RuntimeError("http error")

    def json(self) -> dict:
        return self._payload


@pytest.fixture()
def vault_env(monkeypatch):
    monkeypatch.setenv("SECRETS_PROVIDER", "vault")
    monkeypatch.setenv("VAULT_ADDR", "https://vault.local")
    monkeypatch.setenv("VAULT_TOKEN", "tkn")
    monkeypatch.setenv("VAULT_KV_MOUNT", "secret")
    monkeypatch.setenv("VAULT_SECRET_PATH", "opentok")
    monkeypatch.delenv("VAULT_FIELD_MAP", raising=False)
    monkeypatch.setenv("OPENTOK_API_KEY", "")
    monkeypatch.setenv("OPENTOK_API_SECRET", "")
    monkeypatch.delenv("VAULT_TOKEN_FILE", raising=False)
    monkeypatch.delenv("VAULT_NAMESPACE", raising=False)
    return monkeypatch


def test_vault_loads_default_opentok_fields(vault_env) -> None:
    seen: dict = {}

    def _fake_get(url, **kwargs):
        seen["url"] = url
        seen["headers"] = kwargs.get("headers")
        return _FakeResponse({"data": {"data": {"api_key": "12345", "api_secret": "s3cr3t"}}})

    vault_env.setattr("opentok_server.common.secrets.requests.get", _fake_get)
    maybe_load_external_secrets()
    assert os.environ.get("OPENTOK_API_KEY") == "12345"
    assert os.environ.get("OPENTOK_API_SECRET") == "s3cr3t"
    assert seen["url"] == "https://vault.local/v1/secret/data/opentok"
    assert seen["headers"] == {"X-Vault-Token": "tkn"}


def test_vault_does_not_override_existing(vault_env) -> None:
    vault_env.setenv("OPENTOK_API_SECRET", "existing")

    def _fake_get(*_args, **_kwargs):
        return _FakeResponse({"data": {"data": {"api_key": "12345", "api_secret": "new"}}})

    vault_env.setattr("opentok_server.common.secrets.requests.get", _fake_get)
    maybe_load_external_secrets()
    assert os.environ.get("OPENTOK_API_SECRET") == "existing"
    assert os.environ.get("OPENTOK_API_KEY") == "12345"


def test_vault_custom_field_map_and_numeric_key(vault_env) -> None:
    vault_env.setenv("VAULT_FIELD_MAP", "OPENTOK_API_KEY=key, OPENTOK_API_SECRET=secret")

    def _fake_get(*_args, **_kwargs):
        return _FakeResponse({"data": {"data": {"key": 12345, "secret": " from-map "}}})

    vault_env.setattr("opentok_server.common.secrets.requests.get", _fake_get)
    maybe_load_external_secrets()
    assert os.environ.get("OPENTOK_API_KEY") == "12345"
    assert os.environ.get("OPENTOK_API_SECRET") == "from-map"


def test_vault_field_map_rejects_foreign_variables(vault_env) -> None:
    vault_env.setenv("VAULT_FIELD_MAP", "DATABASE_URL=dsn")
    vault_env.setattr(
        "opentok_server.common.secrets.requests.get",
        lambda *_a, **_k: _FakeResponse({"data": {"data": {"dsn": "x"}}}),
    )
    with pytest.raises(RuntimeError):
        maybe_load_external_secrets()


@pytest.mark.parametrize("value", ["", "   ", {"nested": "x"}, True])
def test_vault_rejects_unusable_credentials(vault_env, value) -> None:
    vault_env.setattr(
        "opentok_server.common.secrets.requests.get",
        lambda *_a, **_k: _FakeResponse({"data": {"data": {"api_key": "12345", "api_secret": value}}}),
    )
    with pytest.raises(RuntimeError):
        maybe_load_external_secrets()


def test_vault_token_from_file(vault_env, tmp_path) -> None:
    token_file = tmp_path / "vault-token"
    token_file.write_text("file-token\n", encoding="utf-8")
    vault_env.delenv("VAULT_TOKEN", raising=False)
    vault_env.setenv("VAULT_TOKEN_FILE", str(token_file))
    seen: dict = {}

    def _fake_get(url, **kwargs):
        seen["headers"] = kwargs.get("headers")
        return _FakeResponse({"data": {"data": {"api_key": "12345", "api_secret": "s"}}})

    vault_env.setattr("opentok_server.common.secrets.requests.get", _fake_get)
    maybe_load_external_secrets()
    assert seen["headers"] == {"X-Vault-Token": "file-token"}


def test_vault_missing_env_raises(monkeypatch) -> None:
    monkeypatch.setenv("SECRETS_PROVIDER", "vault")
    monkeypatch.delenv("VAULT_ADDR", raising=False)
    monkeypatch.delenv("VAULT_TOKEN", raising=False)
    monkeypatch.delenv("VAULT_SECRET_PATH", raising=False)

    with pytest.raises(RuntimeError):
        maybe_load_external_secrets()


def test_unknown_provider_raises(monkeypatch) -> None:
    monkeypatch.setenv("SECRETS_PROVIDER", "aws")
    with pytest.raises(RuntimeError):
        maybe_load_external_secrets()
