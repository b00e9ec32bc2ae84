"""
Загрузка учётных данных OpenTok из Vault (KV v2).

Назначение:
- при SECRETS_PROVIDER=vault подтянуть API key/secret в окружение
- сделать это до инициализации Settings
- не перетирать то, что уже задано в окружении явно
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import requests

_log = logging.getLogger("opentok-server")

# env-переменная -> поле секрета в Vault
DEFAULT_FIELD_MAP = {
    "OPENTOK_API_KEY": "api_key",
    "OPENTOK_API_SECRET": "api_secret",
}


def maybe_load_external_secrets() -> None:
    provider = (os.getenv("SECRETS_PROVIDER") or "").strip().lower()
    if provider in {"", "none"}:
        return
    if provider == "vault":
        load_opentok_credentials_from_vault()
        return
    raise RuntimeError(f"Unsupported SECRETS_PROVIDER={provider}")


def _vault_token() -> str:
    token = (os.getenv("VAULT_TOKEN") or "").strip()
    if token:
        return token
    token_file = os.getenv("VAULT_TOKEN_FILE")
    if not token_file:
        return ""
    try:
        return Path(token_file).read_text(encoding="utf-8").strip()
    except OSError as e:
        _log.error(
            "vault_token_file_read_failed",
            extra={"payload": {"path": token_file, "error": str(e)[:200]}},
        )
        raise


def _field_map() -> dict[str, str]:
    """
    VAULT_FIELD_MAP="OPENTOK_API_KEY=key,OPENTOK_API_SECRET=secret" переопределяет
    имена полей. Разрешены только переменные учётных данных OpenTok.
    """
    raw = (os.getenv("VAULT_FIELD_MAP") or "").strip()
    if not raw:
        return dict(DEFAULT_FIELD_MAP)
    mapping: dict[str, str] = {}
    for item in raw.split(","):
        env_key, _, secret_key = (p.strip() for p in item.partition("="))
        if not env_key or not secret_key:
            continue
        if env_key not in DEFAULT_FIELD_MAP:
            raise RuntimeError(f"VAULT_FIELD_MAP: unsupported variable {env_key}")
        mapping[env_key] = secret_key
    return mapping


def fetch_vault_secret(
    addr: str,
    token: str,
    path: str,
    *,
    mount: str = "secret",
    namespace: str | None = None,
    timeout_sec: int = 5,
    verify: bool = True,
) -> dict:
    headers = {"X-Vault-Token": token}
    if namespace:
        headers["X-Vault-Namespace"] = namespace
    try:
        resp = requests.get(
            f"{addr}/v1/{mount}/data/{path}",
            headers=headers,
            timeout=timeout_sec,
            verify=verify,
        )
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as e:
        raise RuntimeError(f"Vault secrets fetch failed: {e}") from e

    secret = ((data or {}).get("data") or {}).get("data")
    if not isinstance(secret, dict):
        raise RuntimeError("Vault secrets payload is not a dict")
    return secret


def load_opentok_credentials_from_vault() -> int:
    addr = (os.getenv("VAULT_ADDR") or "").strip().rstrip("/")
    token = _vault_token()
    path = (os.getenv("VAULT_SECRET_PATH") or "").strip().strip("/")
    if not addr or not token or not path:
        raise RuntimeError("Vault secrets require VAULT_ADDR, VAULT_TOKEN and VAULT_SECRET_PATH")

    mount = (os.getenv("VAULT_KV_MOUNT") or "secret").strip().strip("/")
    secret = fetch_vault_secret(
        addr,
        token,
        path,
        mount=mount,
        namespace=(os.getenv("VAULT_NAMESPACE") or "").strip() or None,
        timeout_sec=int(os.getenv("VAULT_TIMEOUT_SEC") or 5),
        verify=(os.getenv("VAULT_SKIP_VERIFY") or "").strip().lower() not in {"1", "true"},
    )

    updated: list[str] = []
    for env_key, secret_key in _field_map().items():
        if (os.environ.get(env_key) or "").strip():
            continue
        value = secret.get(secret_key)
        if value is None:
            continue
        # api key в Vault бывает числом
        if isinstance(value, bool) or not isinstance(value, (str, int)) or not str(value).strip():
            raise RuntimeError(f"Vault field {secret_key} must be a non-empty string")
        os.environ[env_key] = str(value).strip()
        updated.append(env_key)

    _log.info(
        "vault_secrets_loaded",
        extra={"payload": {"updated": updated, "path": path, "mount": mount}},
    )
    return len(updated)
