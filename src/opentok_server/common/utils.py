"""
Общие утилиты SDK.

Правила:
- сюда кладём только реально общие функции
- без знаний о REST-эндпоинтах
"""

from __future__ import annotations

import base64
import hashlib
import hmac


def b64_encode(data: bytes) -> str:
    """
    base64(bytes) -> str
    """
    return base64.b64encode(data).decode("utf-8")


def b64_decode(data_b64: str) -> bytes:
    """
    base64(str) -> bytes
    """
    return base64.b64decode(data_b64.encode("utf-8"))


def hmac_sha1_hex(secret: str, message: str) -> str:
    """
    HMAC-SHA1 в hex (подпись legacy T1-токенов).
    """
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha1).hexdigest()
