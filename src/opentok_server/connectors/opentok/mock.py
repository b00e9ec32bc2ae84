"""
Mock-транспорт OpenTok для dev/тестов.

Назначение:
- гонять SDK без реального аккаунта (OPENTOK_TRANSPORT=mock)
- хранит сессии/потоки/архивы в памяти процесса
- отвечает теми же JSON-формами и статусами, что и настоящий API
"""

from __future__ import annotations

import json
import re
import time
from typing import Any
from urllib.parse import unquote

from opentok_server.common.errors import api_error_from_status
from opentok_server.common.ids import new_uuid
from opentok_server.common.utils import b64_encode
from opentok_server.contracts.opentok_api import MAX_LIST_COUNT
from opentok_server.contracts.versions import PROJECT_API_PREFIX, SESSION_CREATE_PATH

_STREAM_RE = re.compile(r"^/session/(?P<sid>[^/]+)/stream(?:/(?P<stream_id>[^/]+))?$")
_ARCHIVE_RE = re.compile(r"^/archive(?:/(?P<archive_id>[^/]+))?(?P<stop>/stop)?$")


def _not_found(message: str) -> Exception:
    return api_error_from_status(404, json.dumps({"code": 404, "message": message}))


def _conflict(message: str) -> Exception:
    return api_error_from_status(409, json.dumps({"code": 409, "message": message}))


class MockOpenTokConnector:
    def __init__(self, api_key: str = "mock") -> None:
        self.api_key = api_key
        self.sessions: dict[str, dict[str, str]] = {}
        self.streams: dict[str, dict[str, dict[str, Any]]] = {}
        self.archives: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, str]] = []

    def add_stream(
        self,
        session_id: str,
        stream_id: str,
        *,
        video_type: str = "camera",
        name: str = "",
        layout_class_list: list[str] | None = None,
    ) -> None:
        self.streams.setdefault(session_id, {})[stream_id] = {
            "id": stream_id,
            "videoType": video_type,
            "name": name,
            "layoutClassList": list(layout_class_list or []),
        }

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
        self.calls.append((method_u, path))

        if path == SESSION_CREATE_PATH and method_u == "POST":
            return self._create_session(form or {})

        prefix = f"{PROJECT_API_PREFIX}/{self.api_key}"
        if not path.startswith(prefix):
            raise _not_found(f"unknown project path {path}")
        rest = path[len(prefix) :]

        m = _STREAM_RE.match(rest)
        if m and method_u == "GET":
            stream_id = m.group("stream_id")
            return self._get_streams(
                unquote(m.group("sid")), unquote(stream_id) if stream_id else None
            )

        m = _ARCHIVE_RE.match(rest)
        if m:
            archive_id = unquote(m.group("archive_id")) if m.group("archive_id") else None
            if method_u == "POST" and archive_id is None:
                return self._start_archive(json_body or {})
            if method_u == "POST" and archive_id and m.group("stop"):
                return self._stop_archive(archive_id)
            if method_u == "GET" and archive_id is None:
                return self._list_archives(params or {})
            if method_u == "GET" and archive_id:
                return self._get_archive(archive_id)
            if method_u == "DELETE" and archive_id:
                return self._delete_archive(archive_id)

        raise _not_found(f"{method_u} {path} is not supported by mock")

    # -------------------------------------------------------------------------
    # sessions / streams
    # -------------------------------------------------------------------------
    def _create_session(self, form: dict[str, str]) -> list[dict[str, Any]]:
        raw = f"1~{self.api_key}~~{new_uuid()}"
        session_id = "1_" + b64_encode(raw.encode("utf-8")).rstrip("=")
        self.sessions[session_id] = dict(form)
        return [
            {
                "session_id": session_id,
                "project_id": self.api_key,
                "partner_id": self.api_key,
                "create_dt": time.strftime("%a %b %d %H:%M:%S UTC %Y", time.gmtime()),
                "media_server_url": "",
            }
        ]

    def _get_streams(self, session_id: str, stream_id: str | None) -> dict[str, Any]:
        streams = self.streams.get(session_id, {})
        if stream_id is None:
            items = list(streams.values())
            return {"count": len(items), "items": items}
        stream = streams.get(stream_id)
        if stream is None:
            raise _not_found("stream not found")
        return dict(stream)

    # -------------------------------------------------------------------------
    # archives
    # -------------------------------------------------------------------------
    def _start_archive(self, body: dict[str, Any]) -> dict[str, Any]:
        session_id = str(body.get("sessionId") or "")
        if session_id not in self.sessions:
            raise _not_found("session not found")
        if self.sessions[session_id].get("p2p.preference") == "enabled":
            raise _conflict("cannot archive a relayed session")
        for archive in self.archives.values():
            if archive["sessionId"] == session_id and archive["status"] == "started":
                raise _conflict("session is already being recorded")

        archive = {
            "id": new_uuid(),
            "status": "started",
            "name": body.get("name"),
            "reason": "",
            "sessionId": session_id,
            "projectId": self.api_key,
            "createdAt": int(time.time() * 1000),
            "size": 0,
            "duration": 0,
            "outputMode": body.get("outputMode", "composed"),
            "hasAudio": bool(body.get("hasAudio", True)),
            "hasVideo": bool(body.get("hasVideo", True)),
            "resolution": body.get("resolution"),
            "url": None,
        }
        self.archives[archive["id"]] = archive
        return dict(archive)

    def _stop_archive(self, archive_id: str) -> dict[str, Any]:
        archive = self.archives.get(archive_id)
        if archive is None:
            raise _not_found("archive not found")
        if archive["status"] != "started":
            raise _conflict("archive is not being recorded")
        archive["status"] = "stopped"
        archive["reason"] = "user initiated"
        archive["duration"] = max(0, int(time.time() - archive["createdAt"] / 1000))
        return dict(archive)

    def _get_archive(self, archive_id: str) -> dict[str, Any]:
        archive = self.archives.get(archive_id)
        if archive is None:
            raise _not_found("archive not found")
        return dict(archive)

    def _list_archives(self, params: dict[str, Any]) -> dict[str, Any]:
        items = sorted(self.archives.values(), key=lambda a: a["createdAt"], reverse=True)
        session_id = params.get("sessionId")
        if session_id:
            items = [a for a in items if a["sessionId"] == session_id]
        total = len(items)
        offset = max(0, int(params.get("offset", 0)))
        count = min(MAX_LIST_COUNT, max(0, int(params.get("count", 50))))
        return {"count": total, "items": [dict(a) for a in items[offset : offset + count]]}

    def _delete_archive(self, archive_id: str) -> None:
        archive = self.archives.get(archive_id)
        if archive is None:
            raise _not_found("archive not found")
        if archive["status"] == "started":
            raise _conflict("archive is still being recorded")
        del self.archives[archive_id]
        return None
