"""
Управление архивами (записями) сессий.

Содержит:
- start/stop/get/list/delete поверх /v2/project/{api_key}/archive
- валидацию опций до сетевого вызова
- логирование смены статуса архива
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from opentok_server.common.errors import ValidationError
from opentok_server.common.logging import get_project_logger
from opentok_server.connectors.base import OpenTokTransport
from opentok_server.contracts.opentok_api import (
    MAX_LIST_COUNT,
    Archive,
    ArchiveList,
    StartArchiveRequest,
    build_request,
    parse_response,
)
from opentok_server.contracts.versions import PROJECT_API_PREFIX

log = get_project_logger()


def _archive_path(api_key: str, archive_id: str | None = None) -> str:
    base = f"{PROJECT_API_PREFIX}/{api_key}/archive"
    if archive_id is None:
        return base
    if not (archive_id or "").strip():
        raise ValidationError("archive_id не задан")
    return f"{base}/{quote(archive_id, safe='')}"


def _log_archive(event: str, archive: Archive) -> None:
    log.info(
        event,
        extra={
            "payload": {
                "archive_id": archive.id,
                "session_id": archive.session_id,
                "status": archive.status,
            }
        },
    )


def start_archive(
    transport: OpenTokTransport,
    *,
    api_key: str,
    request: StartArchiveRequest | dict,
) -> Archive:
    req = build_request(StartArchiveRequest, request)
    data = transport.request(
        "POST",
        _archive_path(api_key),
        operation="start_archive",
        json_body=req.to_payload(),
    )
    archive = parse_response(Archive, data, operation="start_archive")
    _log_archive("opentok_archive_started", archive)
    return archive


def stop_archive(transport: OpenTokTransport, *, api_key: str, archive_id: str) -> Archive:
    data = transport.request(
        "POST",
        f"{_archive_path(api_key, archive_id)}/stop",
        operation="stop_archive",
    )
    archive = parse_response(Archive, data, operation="stop_archive")
    _log_archive("opentok_archive_stopped", archive)
    return archive


def get_archive(transport: OpenTokTransport, *, api_key: str, archive_id: str) -> Archive:
    data = transport.request("GET", _archive_path(api_key, archive_id), operation="get_archive")
    return parse_response(Archive, data, operation="get_archive")


def list_archives(
    transport: OpenTokTransport,
    *,
    api_key: str,
    offset: int = 0,
    count: int | None = None,
    session_id: str | None = None,
) -> ArchiveList:
    if offset < 0:
        raise ValidationError("offset не может быть отрицательным", {"offset": offset})
    params: dict[str, Any] = {"offset": offset}
    if count is not None:
        if not 0 < count <= MAX_LIST_COUNT:
            raise ValidationError(
                f"count должен быть от 1 до {MAX_LIST_COUNT}", {"count": count}
            )
        params["count"] = count
    if session_id:
        params["sessionId"] = session_id
    data = transport.request(
        "GET",
        _archive_path(api_key),
        operation="list_archives",
        params=params,
    )
    return parse_response(ArchiveList, data, operation="list_archives")


def delete_archive(transport: OpenTokTransport, *, api_key: str, archive_id: str) -> None:
    transport.request("DELETE", _archive_path(api_key, archive_id), operation="delete_archive")
    log.info("opentok_archive_deleted", extra={"payload": {"archive_id": archive_id}})
