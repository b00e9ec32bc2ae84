"""
OpenTok server SDK — точка входа.

Назначение:
- создание сессий, выпуск клиентских токенов
- информация о потоках
- управление архивами (start/stop/get/list/delete)

Пример:
    opentok = OpenTok("<api_key>", "<api_secret>")
    session_id = opentok.create_session(media_mode=MediaMode.routed)
    token = opentok.generate_token(session_id, TokenRole.publisher)

API secret никому не передаём и не логируем.
"""

from __future__ import annotations

from opentok_server.common.config import get_settings
from opentok_server.common.errors import ValidationError
from opentok_server.common.security import Credentials
from opentok_server.connectors.base import OpenTokTransport
from opentok_server.connectors.opentok.http import OpenTokHttpConnector
from opentok_server.connectors.opentok.mock import MockOpenTokConnector
from opentok_server.contracts.opentok_api import (
    Archive,
    ArchiveList,
    CreatedSession,
    SessionOptions,
    StreamInfo,
    StreamList,
    TokenClaims,
)
from opentok_server.domain.enums import (
    ArchiveMode,
    MediaMode,
    OutputMode,
    TokenFormat,
    TokenRole,
    TransportProvider,
)
from opentok_server.services import archive_service, session_service, stream_service, token_service


def _resolve_transport(
    credentials: Credentials,
    *,
    api_url: str | None,
    timeout_sec: int | None,
) -> OpenTokTransport:
    raw = (get_settings().opentok_transport or "http").strip().lower()
    if raw == TransportProvider.http.value:
        return OpenTokHttpConnector(credentials, base_url=api_url, timeout_sec=timeout_sec)
    if raw == TransportProvider.mock.value:
        return MockOpenTokConnector(api_key=credentials.api_key)
    raise ValidationError(
        f"Неизвестный транспорт: {raw}",
        details={"allowed": "http,mock"},
    )


class OpenTok:
    def __init__(
        self,
        api_key: str | None = None,
        api_secret: str | None = None,
        *,
        api_url: str | None = None,
        timeout_sec: int | None = None,
        transport: OpenTokTransport | None = None,
    ) -> None:
        s = get_settings()
        self.credentials = Credentials(
            api_key=str(api_key or s.opentok_api_key or "").strip(),
            api_secret=str(api_secret or s.opentok_api_secret or "").strip(),
        )
        self.transport = transport or _resolve_transport(
            self.credentials, api_url=api_url, timeout_sec=timeout_sec
        )

    @property
    def api_key(self) -> str:
        return self.credentials.api_key

    # -------------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------------
    def create_session(
        self,
        options: SessionOptions | None = None,
        *,
        location: str | None = None,
        media_mode: MediaMode | str | None = None,
        archive_mode: ArchiveMode | str | None = None,
    ) -> str:
        """
        Создаёт сессию и возвращает её session_id.
        """
        return self.create_session_details(
            options, location=location, media_mode=media_mode, archive_mode=archive_mode
        ).session_id

    def create_session_details(
        self,
        options: SessionOptions | None = None,
        *,
        location: str | None = None,
        media_mode: MediaMode | str | None = None,
        archive_mode: ArchiveMode | str | None = None,
    ) -> CreatedSession:
        raw = {"location": location, "media_mode": media_mode, "archive_mode": archive_mode}
        given = {k: v for k, v in raw.items() if v is not None}
        if options is None:
            options = given
        elif given:
            raise ValidationError(
                "Передайте либо options, либо отдельные параметры", {"params": sorted(given)}
            )
        return session_service.create_session(self.transport, options)

    # -------------------------------------------------------------------------
    # Tokens
    # -------------------------------------------------------------------------
    def generate_token(
        self,
        session_id: str,
        role: TokenRole | str = TokenRole.publisher,
        *,
        expire_time: int | None = None,
        data: str | None = None,
        initial_layout_class_list: list[str] | None = None,
        token_format: TokenFormat | str | None = None,
    ) -> str:
        options = {
            "role": role,
            "expire_time": expire_time,
            "data": data,
            "initial_layout_class_list": list(initial_layout_class_list or []),
            "token_format": token_format,
        }
        return token_service.generate_token(self.credentials, session_id, options)

    def decode_token(self, token: str) -> TokenClaims:
        return token_service.decode_token(self.credentials, token)

    # -------------------------------------------------------------------------
    # Streams
    # -------------------------------------------------------------------------
    def get_stream_info(self, session_id: str, stream_id: str) -> StreamInfo:
        return stream_service.get_stream_info(
            self.transport, api_key=self.api_key, session_id=session_id, stream_id=stream_id
        )

    def list_streams(self, session_id: str) -> StreamList:
        return stream_service.list_streams(
            self.transport, api_key=self.api_key, session_id=session_id
        )

    # -------------------------------------------------------------------------
    # Archives
    # -------------------------------------------------------------------------
    def start_archive(
        self,
        session_id: str,
        *,
        name: str | None = None,
        has_audio: bool = True,
        has_video: bool = True,
        output_mode: OutputMode | str = OutputMode.composed,
        resolution: str | None = None,
    ) -> Archive:
        request = {
            "session_id": session_id,
            "name": name,
            "has_audio": has_audio,
            "has_video": has_video,
            "output_mode": output_mode,
            "resolution": resolution,
        }
        return archive_service.start_archive(self.transport, api_key=self.api_key, request=request)

    def stop_archive(self, archive_id: str) -> Archive:
        return archive_service.stop_archive(
            self.transport, api_key=self.api_key, archive_id=archive_id
        )

    def get_archive(self, archive_id: str) -> Archive:
        return archive_service.get_archive(
            self.transport, api_key=self.api_key, archive_id=archive_id
        )

    def list_archives(
        self,
        *,
        offset: int = 0,
        count: int | None = None,
        session_id: str | None = None,
    ) -> ArchiveList:
        return archive_service.list_archives(
            self.transport,
            api_key=self.api_key,
            offset=offset,
            count=count,
            session_id=session_id,
        )

    def delete_archive(self, archive_id: str) -> None:
        archive_service.delete_archive(
            self.transport, api_key=self.api_key, archive_id=archive_id
        )
