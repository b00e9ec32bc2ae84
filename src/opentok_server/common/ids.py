"""
Генерация идентификаторов.

Назначение:
- nonce для клиентских токенов
- jti для auth JWT
"""

from __future__ import annotations

import secrets
import uuid


def new_uuid() -> str:
    """UUIDv4 строкой."""
    return str(uuid.uuid4())


def new_nonce() -> int:
    """Случайное беззнаковое 64-битное число."""
    return secrets.randbits(64)


def new_jti() -> str:
    """jti по RFC 7519 обязан быть строкой."""
    return uuid.uuid4().hex
