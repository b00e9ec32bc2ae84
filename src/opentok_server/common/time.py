"""
Утилиты времени.

Назначение:
- единый источник "сейчас" (удобно подменять в тестах)
- unix-секунды для JWT claims
"""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Текущее время в UTC (datetime).
    """
    return datetime.now(UTC)


def unix_now() -> int:
    """
    Текущее время в UTC в секундах (int).
    """
    return int(utc_now().timestamp())


def from_unix_ms(value: int | float | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(float(value) / 1000.0, tz=UTC)
