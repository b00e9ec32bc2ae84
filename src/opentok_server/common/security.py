"""
Авторизация запросов к OpenTok REST API.

Каждый запрос несёт заголовок X-OPENTOK-AUTH с короткоживущим project JWT:
- iss — API key проекта
- ist — всегда "project"
- iat / exp — время выпуска и истечения (по умолчанию +3 минуты)
- jti — случайный идентификатор
Подпись HS256 секретом проекта.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import jwt

from .config import get_settings
from .errors import SigningError, ValidationError
from .ids import new_jti
from .time import unix_now

AUTH_HEADER = "X-OPENTOK-AUTH"
PROJECT_ISSUER_TYPE = "project"
JWT_ALGORITHM = "HS256"


@dataclass(frozen=True)
class Credentials:
    api_key: str
    api_secret: str

    def __post_init__(self) -> None:
        if not (self.api_key or "").strip():
            raise ValidationError("api_key не задан")
        if not (self.api_secret or "").strip():
            raise ValidationError("api_secret не задан")

    def __repr__(self) -> str:
        return f"Credentials(api_key={self.api_key!r}, api_secret='***')"


def build_project_claims(api_key: str, *, ttl_sec: int | None = None) -> dict[str, Any]:
    ttl = ttl_sec if ttl_sec is not None else int(get_settings().opentok_auth_jwt_ttl_sec)
    now = unix_now()
    return {
        "iss": api_key,
        "ist": PROJECT_ISSUER_TYPE,
        "iat": now,
        "exp": now + max(1, int(ttl)),
        "jti": new_jti(),
    }


def sign_claims(claims: dict[str, Any], secret: str) -> str:
    try:
        return str(jwt.encode(claims, secret, algorithm=JWT_ALGORITHM))
    except (jwt.PyJWTError, TypeError, ValueError) as e:
        raise SigningError(details={"err": str(e)}) from e


def build_auth_header(credentials: Credentials, *, ttl_sec: int | None = None) -> dict[str, str]:
    claims = build_project_claims(credentials.api_key, ttl_sec=ttl_sec)
    return {AUTH_HEADER: sign_claims(claims, credentials.api_secret)}
