"""
Клиентские токены OpenTok (подключение к сессии).

Форматы:
- jwt (по умолчанию) — HS256, claims iss/ist/iat/exp/nonce/role/scope/session_id
- t1 (legacy) — "T1==" + base64("partner_id=<key>&sig=<hmac_sha1>:<data>")

Токен считается локально, без сетевого вызова.
decode_token проверяет подпись и возвращает claims (для обоих форматов).
"""

from __future__ import annotations

import binascii
import hmac
from typing import Any
from urllib.parse import parse_qs, parse_qsl, urlencode

import jwt

from opentok_server.common.config import get_settings
from opentok_server.common.errors import InvalidTokenError, ValidationError
from opentok_server.common.ids import new_nonce
from opentok_server.common.logging import get_project_logger
from opentok_server.common.metrics import record_token_issued
from opentok_server.common.security import (
    JWT_ALGORITHM,
    PROJECT_ISSUER_TYPE,
    Credentials,
    sign_claims,
)
from opentok_server.common.time import unix_now
from opentok_server.common.utils import b64_decode, b64_encode, hmac_sha1_hex
from opentok_server.contracts.opentok_api import TokenClaims, TokenOptions, build_request
from opentok_server.domain.enums import TokenFormat, TokenRole

log = get_project_logger()

T1_PREFIX = "T1=="
TOKEN_SCOPE = "session.connect"
MAX_TOKEN_TTL_SEC = 30 * 24 * 60 * 60


def _resolve_format(opts: TokenOptions) -> TokenFormat:
    if opts.token_format is not None:
        return opts.token_format
    raw = (get_settings().opentok_token_format or "jwt").strip().lower()
    try:
        return TokenFormat(raw)
    except ValueError as e:
        raise ValidationError(
            "Неизвестный формат токена", details={"token_format": raw, "allowed": "jwt,t1"}
        ) from e


def _resolve_expire_time(opts: TokenOptions, now: int) -> int:
    if opts.expire_time is None:
        return now + max(1, int(get_settings().opentok_token_ttl_sec))
    expire_time = int(opts.expire_time)
    if expire_time <= now:
        raise ValidationError("expire_time должен быть в будущем", {"expire_time": expire_time})
    if expire_time > now + MAX_TOKEN_TTL_SEC:
        raise ValidationError("expire_time не может быть дальше 30 дней", {"expire_time": expire_time})
    return expire_time


def _build_jwt(
    credentials: Credentials,
    session_id: str,
    opts: TokenOptions,
    *,
    now: int,
    expire_time: int,
    nonce: int,
) -> str:
    claims: dict[str, Any] = {
        "iss": credentials.api_key,
        "ist": PROJECT_ISSUER_TYPE,
        "iat": now,
        "exp": expire_time,
        "nonce": nonce,
        "role": opts.role.value,
        "scope": TOKEN_SCOPE,
        "session_id": session_id,
    }
    if opts.data:
        claims["connection_data"] = opts.data
    if opts.initial_layout_class_list:
        claims["initial_layout_class_list"] = " ".join(opts.initial_layout_class_list)
    return sign_claims(claims, credentials.api_secret)


def _build_t1(
    credentials: Credentials,
    session_id: str,
    opts: TokenOptions,
    *,
    now: int,
    expire_time: int,
    nonce: int,
) -> str:
    fields: list[tuple[str, Any]] = [
        ("session_id", session_id),
        ("create_time", now),
        ("expire_time", expire_time),
        ("nonce", nonce),
        ("role", opts.role.value),
    ]
    if opts.data:
        fields.append(("connection_data", opts.data))
    if opts.initial_layout_class_list:
        fields.append(("initial_layout_class_list", " ".join(opts.initial_layout_class_list)))
    data = urlencode(fields)
    sig = hmac_sha1_hex(credentials.api_secret, data)
    decoded = f"partner_id={credentials.api_key}&sig={sig}:{data}"
    return T1_PREFIX + b64_encode(decoded.encode("utf-8"))


def generate_token(
    credentials: Credentials,
    session_id: str,
    options: TokenOptions | dict | None = None,
) -> str:
    if not (session_id or "").strip():
        raise ValidationError("session_id не задан")
    opts = build_request(TokenOptions, options or {})
    token_format = _resolve_format(opts)
    now = unix_now()
    expire_time = _resolve_expire_time(opts, now)
    nonce = new_nonce()

    if token_format == TokenFormat.t1:
        token = _build_t1(credentials, session_id, opts, now=now, expire_time=expire_time, nonce=nonce)
    else:
        token = _build_jwt(credentials, session_id, opts, now=now, expire_time=expire_time, nonce=nonce)

    record_token_issued(role=opts.role.value, token_format=token_format.value)
    log.info(
        "opentok_token_issued",
        extra={
            "payload": {
                "session_id": session_id,
                "role": opts.role.value,
                "format": token_format.value,
                "expire_time": expire_time,
            }
        },
    )
    return token


# =============================================================================
# РАЗБОР ТОКЕНОВ
# =============================================================================
def _split_layout(raw: str | None) -> list[str]:
    return [c for c in (raw or "").split(" ") if c]


def _decode_jwt(credentials: Credentials, token: str) -> TokenClaims:
    try:
        claims = jwt.decode(
            token,
            credentials.api_secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["iat", "exp"]},
        )
    except jwt.PyJWTError as e:
        raise InvalidTokenError(details={"err": str(e)}) from e

    if claims.get("ist") != PROJECT_ISSUER_TYPE or claims.get("scope") != TOKEN_SCOPE:
        raise InvalidTokenError("Это не клиентский токен OpenTok")
    if str(claims.get("iss")) != credentials.api_key:
        raise InvalidTokenError("Токен выпущен для другого API key")
    try:
        return TokenClaims(
            token_format=TokenFormat.jwt,
            api_key=str(claims["iss"]),
            session_id=str(claims["session_id"]),
            role=TokenRole(claims["role"]),
            create_time=int(claims["iat"]),
            expire_time=int(claims["exp"]),
            nonce=claims.get("nonce", ""),
            connection_data=claims.get("connection_data"),
            initial_layout_class_list=_split_layout(claims.get("initial_layout_class_list")),
        )
    except (KeyError, ValueError) as e:
        raise InvalidTokenError("В токене не хватает claims", {"err": str(e)}) from e


def _decode_t1(credentials: Credentials, token: str) -> TokenClaims:
    try:
        decoded = b64_decode(token[len(T1_PREFIX) :]).decode("utf-8")
        meta_raw, data = decoded.split(":", 1)
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise InvalidTokenError("Не удалось разобрать T1 токен") from e

    meta = {k: v[0] for k, v in parse_qs(meta_raw).items()}
    sig = meta.get("sig", "")
    expected = hmac_sha1_hex(credentials.api_secret, data)
    if not hmac.compare_digest(sig.encode("utf-8"), expected.encode("utf-8")):
        raise InvalidTokenError("Подпись T1 токена не совпадает")
    if meta.get("partner_id") != credentials.api_key:
        raise InvalidTokenError("Токен выпущен для другого API key")

    fields = dict(parse_qsl(data))
    try:
        claims = TokenClaims(
            token_format=TokenFormat.t1,
            api_key=meta["partner_id"],
            session_id=fields["session_id"],
            role=TokenRole(fields["role"]),
            create_time=int(fields["create_time"]),
            expire_time=int(fields["expire_time"]),
            nonce=int(fields["nonce"]),
            connection_data=fields.get("connection_data"),
            initial_layout_class_list=_split_layout(fields.get("initial_layout_class_list")),
        )
    except (KeyError, ValueError) as e:
        raise InvalidTokenError("В токене не хватает полей", {"err": str(e)}) from e

    if claims.expire_time <= unix_now():
        raise InvalidTokenError("Срок действия токена истёк")
    return claims


def decode_token(credentials: Credentials, token: str) -> TokenClaims:
    token = (token or "").strip()
    if not token:
        raise InvalidTokenError("Пустой токен")
    if token.startswith(T1_PREFIX):
        return _decode_t1(credentials, token)
    return _decode_jwt(credentials, token)
