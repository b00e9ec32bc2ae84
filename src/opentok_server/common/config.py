"""
Централизованная конфигурация SDK (ENV / .env).

Важно:
- настройки читаются из .env и переменных окружения
- типизированные значения через pydantic-settings
- явные аргументы конструктора OpenTok имеют приоритет над настройками
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .secrets import maybe_load_external_secrets


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Runtime
    # -------------------------------------------------------------------------
    app_env: str = Field(default="dev", alias="APP_ENV")

    # -------------------------------------------------------------------------
    # OpenTok credentials / endpoint
    # -------------------------------------------------------------------------
    opentok_api_key: str | None = Field(default=None, alias="OPENTOK_API_KEY")
    opentok_api_secret: str | None = Field(default=None, alias="OPENTOK_API_SECRET")
    opentok_api_url: str = Field(default="https://api.opentok.com", alias="OPENTOK_API_URL")
    opentok_timeout_sec: int = Field(default=10, alias="OPENTOK_TIMEOUT_SEC")
    opentok_transport: str = Field(default="http", alias="OPENTOK_TRANSPORT")  # http|mock

    # -------------------------------------------------------------------------
    # Tokens
    # -------------------------------------------------------------------------
    opentok_auth_jwt_ttl_sec: int = Field(default=180, alias="OPENTOK_AUTH_JWT_TTL_SEC")
    opentok_token_ttl_sec: int = Field(default=86_400, alias="OPENTOK_TOKEN_TTL_SEC")
    opentok_token_format: str = Field(default="jwt", alias="OPENTOK_TOKEN_FORMAT")  # jwt|t1

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")  # json|text

    def model_post_init(self, __context) -> None:
        _apply_file_overrides(self)


def _apply_file_overrides(settings: Settings) -> None:
    """
    Поддержка <NAME>_FILE (docker/k8s secrets): значение читается из файла.
    """
    alias_to_field = {}
    for name, field in type(settings).model_fields.items():
        alias = field.alias or name
        alias_to_field[str(alias)] = name
        alias_to_field[str(name)] = name

    for key, path in os.environ.items():
        if not key.endswith("_FILE"):
            continue
        base = key[: -len("_FILE")]
        target = alias_to_field.get(base)
        if not target:
            continue
        file_path = (path or "").strip()
        if not file_path:
            continue
        try:
            raw = Path(file_path).read_text(encoding="utf-8")
        except Exception as e:
            logging.getLogger("opentok-server").error(
                "config_file_read_failed",
                extra={"payload": {"env_key": key, "path": file_path, "error": str(e)[:200]}},
            )
            raise RuntimeError(f"Failed to read {key} from {file_path}") from e
        setattr(settings, target, raw.strip())


maybe_load_external_secrets()
_SETTINGS = Settings()


def get_settings() -> Settings:
    return _SETTINGS
