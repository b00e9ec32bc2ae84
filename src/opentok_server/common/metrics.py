"""
Метрики Prometheus для SDK.

Назначение:
- счётчики и задержки обращений к OpenTok REST API
- счётчик выпущенных клиентских токенов
- render_metrics() для приложений, которые сами отдают /metrics
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# =============================================================================
# СЧЁТЧИКИ И МЕТРИКИ
# =============================================================================

OPENTOK_REQUESTS_TOTAL = Counter(
    "opentok_requests_total",
    "Количество запросов к OpenTok REST API",
    ["operation", "method", "status"],  # status=<http code>|transport_error
)

OPENTOK_REQUEST_LATENCY_MS = Histogram(
    "opentok_request_latency_ms",
    "Задержка запроса к OpenTok REST API (мс)",
    ["operation"],
    buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000),
)

OPENTOK_TOKENS_ISSUED_TOTAL = Counter(
    "opentok_tokens_issued_total",
    "Количество выпущенных клиентских токенов",
    ["role", "format"],
)


@contextmanager
def track_request_latency(operation: str) -> Iterator[None]:
    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        OPENTOK_REQUEST_LATENCY_MS.labels(operation=operation).observe(elapsed_ms)


def record_api_request(*, operation: str, method: str, status: str) -> None:
    OPENTOK_REQUESTS_TOTAL.labels(operation=operation, method=method.upper(), status=status).inc()


def record_token_issued(*, role: str, token_format: str) -> None:
    OPENTOK_TOKENS_ISSUED_TOTAL.labels(role=role, format=token_format).inc()


def render_metrics() -> tuple[bytes, str]:
    """
    Тело и content-type для отдачи /metrics из приложения.
    """
    return generate_latest(), CONTENT_TYPE_LATEST
