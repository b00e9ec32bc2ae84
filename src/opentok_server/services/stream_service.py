"""
Информация о потоках в сессии.
"""

from __future__ import annotations

from urllib.parse import quote

from opentok_server.common.errors import ValidationError
from opentok_server.connectors.base import OpenTokTransport
from opentok_server.contracts.opentok_api import StreamInfo, StreamList, parse_response
from opentok_server.contracts.versions import PROJECT_API_PREFIX


def _streams_path(api_key: str, session_id: str) -> str:
    if not (session_id or "").strip():
        raise ValidationError("session_id не задан")
    return f"{PROJECT_API_PREFIX}/{api_key}/session/{quote(session_id, safe='')}/stream"


def get_stream_info(
    transport: OpenTokTransport,
    *,
    api_key: str,
    session_id: str,
    stream_id: str,
) -> StreamInfo:
    if not (stream_id or "").strip():
        raise ValidationError("stream_id не задан")
    data = transport.request(
        "GET",
        f"{_streams_path(api_key, session_id)}/{quote(stream_id, safe='')}",
        operation="get_stream",
    )
    return parse_response(StreamInfo, data, operation="get_stream")


def list_streams(
    transport: OpenTokTransport,
    *,
    api_key: str,
    session_id: str,
) -> StreamList:
    data = transport.request("GET", _streams_path(api_key, session_id), operation="list_streams")
    return parse_response(StreamList, data, operation="list_streams")
