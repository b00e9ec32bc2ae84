"""
Доменные перечисления (enum).

Значения совпадают с тем, что ожидает/возвращает OpenTok REST API.
"""

from __future__ import annotations

import enum


class MediaMode(str, enum.Enum):
    """
    Передача медиа: напрямую между клиентами (relayed) или через Media Router (routed).
    """

    relayed = "relayed"
    routed = "routed"

    @property
    def p2p_preference(self) -> str:
        return "enabled" if self is MediaMode.relayed else "disabled"


class ArchiveMode(str, enum.Enum):
    """
    Автоматическая запись сессии (always) или по запросу (manual).
    """

    manual = "manual"
    always = "always"


class TokenRole(str, enum.Enum):
    """
    Роль клиента в сессии.
    """

    publisher = "publisher"
    subscriber = "subscriber"
    moderator = "moderator"
    publisher_only = "publisheronly"


class TokenFormat(str, enum.Enum):
    jwt = "jwt"
    t1 = "t1"


class VideoType(str, enum.Enum):
    camera = "camera"
    screen = "screen"
    custom = "custom"


class OutputMode(str, enum.Enum):
    """
    composed — один файл со всеми потоками, individual — отдельный файл на поток.
    """

    composed = "composed"
    individual = "individual"


class ArchiveStatus(str, enum.Enum):
    available = "available"
    expired = "expired"
    failed = "failed"
    paused = "paused"
    started = "started"
    stopped = "stopped"
    uploaded = "uploaded"


class TransportProvider(str, enum.Enum):
    http = "http"
    mock = "mock"
