"""
HTTP-транспорт OpenTok.

Назначение:
- подпись каждого запроса project JWT (X-OPENTOK-AUTH)
- form/json тела, query-параметры
- маппинг ошибок: сеть -> TransportError, 4xx/5xx -> ApiError, мусор в теле -> UnexpectedResponseError
"""

from __future__ import annotations

from typing import Any

import requests

from opentok_server.common.config import get_settings
from opentok_server.common.errors import (
    TransportError,
    UnexpectedResponseError,
    api_error_from_status,
)
from opentok_server.common.logging import get_project_logger
from opentok_server.common.metrics import record_api_request, track_request_latency
from opentok_server.common.security import Credentials, build_auth_header
from opentok_server.contracts.versions import USER_AGENT

log = get_project_logger()

_BODY_PREVIEW_LEN = 500


class OpenTokHttpConnector:
    def __init__(
        self,
        credentials: Credentials,
        *,
        base_url: str | None = None,
        timeout_sec: int | None = None,
    ) -> None:
        s = get_settings()
        self.credentials = credentials
        self.base_url = (base_url or s.opentok_api_url or "").rstrip("/")
        self.timeout_sec = int(timeout_sec if timeout_sec is not None else s.opentok_timeout_sec)

    def _headers(self, *, has_json: bool) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }
        if has_json:
            headers["Content-Type"] = "application/json"
        headers.update(build_auth_header(self.credentials))
        return headers

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
        method_u = method.upper()
        url = f"{self.base_url}{path}"
        headers = self._headers(has_json=json_body is not None)

        try:
            with track_request_latency(operation):
                resp = requests.request(
                    method_u,
                    url,
                    headers=headers,
                    data=form,
                    json=json_body,
                    params=params,
                    timeout=self.timeout_sec,
                )
        except requests.RequestException as e:
            record_api_request(operation=operation, method=method_u, status="transport_error")
            log.warning(
                "opentok_request_failed",
                extra={"payload": {"operation": operation, "method": method_u, "err": str(e)[:200]}},
            )
            raise TransportError(details={"operation": operation, "err": str(e)}) from e

        status_code = int(resp.status_code)
        record_api_request(operation=operation, method=method_u, status=str(status_code))

        if not 200 <= status_code <= 299:
            body = (resp.text or "").strip()
            log.warning(
                "opentok_request_rejected",
                extra={
                    "payload": {
                        "operation": operation,
                        "method": method_u,
                        "status": status_code,
                        "body": body[:_BODY_PREVIEW_LEN],
                    }
                },
            )
            raise api_error_from_status(status_code, body)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise UnexpectedResponseError(
                details={"operation": operation, "body": (resp.text or "")[:_BODY_PREVIEW_LEN]}
            ) from e
