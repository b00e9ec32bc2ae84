"""
Создание сессий OpenTok.

POST /session/create с form-телом (archiveMode, location, p2p.preference).
Ответ: JSON-массив ровно из одного объекта с session_id.
"""

from __future__ import annotations

from typing import Any

from opentok_server.common.errors import UnexpectedResponseError
from opentok_server.common.logging import get_project_logger
from opentok_server.connectors.base import OpenTokTransport
from opentok_server.contracts.opentok_api import (
    CreatedSession,
    SessionOptions,
    build_request,
    parse_response,
)
from opentok_server.contracts.versions import SESSION_CREATE_PATH

log = get_project_logger()

OPERATION = "create_session"


def parse_create_session_response(data: Any) -> CreatedSession:
    if not isinstance(data, list) or len(data) != 1:
        raise UnexpectedResponseError(
            details={"operation": OPERATION, "body": str(data)[:500]}
        )
    return parse_response(CreatedSession, data[0], operation=OPERATION)


def create_session(
    transport: OpenTokTransport,
    options: SessionOptions | dict | None = None,
) -> CreatedSession:
    opts = build_request(SessionOptions, options or {})
    data = transport.request(
        "POST",
        SESSION_CREATE_PATH,
        operation=OPERATION,
        form=opts.to_form(),
    )
    session = parse_create_session_response(data)
    log.info(
        "opentok_session_created",
        extra={
            "payload": {
                "session_id": session.session_id,
                "media_mode": opts.media_mode.value if opts.media_mode else None,
                "archive_mode": opts.archive_mode.value if opts.archive_mode else None,
            }
        },
    )
    return session
