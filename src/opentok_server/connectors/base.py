"""
Базовый интерфейс транспорта к OpenTok REST API.

Назначение:
- отделить "как ходим в сеть" от "какие эндпоинты и что в ответе"
- подменять реальный HTTP на in-memory mock в dev/тестах
"""

from __future__ import annotations

from typing import Any, Protocol


class OpenTokTransport(Protocol):
    """
    Контракт транспорта.

    Возвращает разобранный JSON (dict/list) или None, если тело пустое.
    Non-2xx ответы превращаются в ApiError, сетевые сбои в TransportError.
    """

    def request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        form: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        ...
