"""
Контракты OpenTok REST API (Pydantic-модели).

Назначение:
- валидация опций на входе (до сетевого вызова)
- разбор JSON ответов в типизированные структуры
- имена полей в JSON ровно как у OpenTok (camelCase через alias)
"""

from __future__ import annotations

import ipaddress
from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from opentok_server.common.errors import UnexpectedResponseError, ValidationError
from opentok_server.common.time import from_unix_ms
from opentok_server.domain.enums import (
    ArchiveMode,
    ArchiveStatus,
    MediaMode,
    OutputMode,
    TokenFormat,
    TokenRole,
    VideoType,
)

ARCHIVE_RESOLUTIONS = {
    "640x480",
    "480x640",
    "1280x720",
    "720x1280",
    "1920x1080",
    "1080x1920",
}
MAX_LIST_COUNT = 1000

_M = TypeVar("_M", bound=BaseModel)


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


# =============================================================================
# СЕССИИ
# =============================================================================
class SessionOptions(BaseModel):
    """
    Опции создания сессии.

    location — IPv4-подсказка, где разместить сессию в сети OpenTok.
    Без media_mode тело запроса несёт p2p.preference=disabled (routed).
    archive_mode=always требует routed.
    """

    model_config = ConfigDict(frozen=True)

    location: str | None = None
    media_mode: MediaMode | None = None
    archive_mode: ArchiveMode | None = None

    @field_validator("location")
    @classmethod
    def _check_location(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        try:
            ipaddress.IPv4Address(value)
        except ValueError as e:
            raise ValueError(f"location должен быть IPv4 адресом: {value!r}") from e
        return value

    @model_validator(mode="after")
    def _check_archive_requires_routed(self) -> SessionOptions:
        if self.archive_mode == ArchiveMode.always and self.media_mode == MediaMode.relayed:
            raise ValueError("archive_mode=always требует media_mode=routed")
        return self

    def to_form(self) -> dict[str, str]:
        form = {
            "archiveMode": (self.archive_mode or ArchiveMode.manual).value,
            "p2p.preference": self.media_mode.p2p_preference if self.media_mode else "disabled",
        }
        if self.location:
            form["location"] = self.location
        return form


class CreatedSession(_ApiModel):
    session_id: str
    project_id: str | int | None = None
    partner_id: str | int | None = None
    create_dt: str | None = None
    media_server_url: str | None = None

    @field_validator("session_id")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("пустой session_id")
        return value


# =============================================================================
# ТОКЕНЫ
# =============================================================================
class TokenOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: TokenRole = TokenRole.publisher
    expire_time: int | None = None  # unix seconds
    data: str | None = Field(default=None, max_length=1000)
    initial_layout_class_list: list[str] = Field(default_factory=list)
    token_format: TokenFormat | None = None

    @field_validator("initial_layout_class_list")
    @classmethod
    def _check_layout_classes(cls, v: list[str]) -> list[str]:
        # в токене классы склеиваются через пробел
        for name in v:
            if not name or any(ch.isspace() for ch in name):
                raise ValueError(f"layout class без пробелов и не пустой: {name!r}")
        return v


class TokenClaims(BaseModel):
    """
    Разобранный клиентский токен (любого формата).
    """

    token_format: TokenFormat
    api_key: str
    session_id: str
    role: TokenRole
    create_time: int
    expire_time: int
    nonce: int | str
    connection_data: str | None = None
    initial_layout_class_list: list[str] = Field(default_factory=list)


# =============================================================================
# ПОТОКИ
# =============================================================================
class StreamInfo(_ApiModel):
    id: str
    video_type: VideoType = Field(alias="videoType")
    name: str = ""
    layout_class_list: list[str] = Field(default_factory=list, alias="layoutClassList")


class StreamList(_ApiModel):
    count: int
    items: list[StreamInfo] = Field(default_factory=list)


# =============================================================================
# АРХИВЫ
# =============================================================================
class StartArchiveRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    session_id: str = Field(alias="sessionId", min_length=1)
    name: str | None = None
    has_audio: bool = Field(default=True, alias="hasAudio")
    has_video: bool = Field(default=True, alias="hasVideo")
    output_mode: OutputMode = Field(default=OutputMode.composed, alias="outputMode")
    resolution: str | None = None

    @field_validator("resolution")
    @classmethod
    def _check_resolution(cls, value: str | None) -> str | None:
        if value is not None and value not in ARCHIVE_RESOLUTIONS:
            raise ValueError(f"неподдерживаемое разрешение: {value}")
        return value

    @model_validator(mode="after")
    def _check_combination(self) -> StartArchiveRequest:
        if not self.has_audio and not self.has_video:
            raise ValueError("архив без аудио и без видео")
        if self.output_mode == OutputMode.individual and self.resolution:
            raise ValueError("resolution не поддерживается для outputMode=individual")
        return self

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class Archive(_ApiModel):
    id: str
    status: str
    session_id: str = Field(alias="sessionId")
    name: str | None = None
    reason: str | None = None
    project_id: int | str | None = Field(default=None, alias="projectId")
    partner_id: int | str | None = Field(default=None, alias="partnerId")
    created_at: int | None = Field(default=None, alias="createdAt")  # ms
    size: int = 0
    duration: int = 0  # sec
    output_mode: OutputMode = Field(default=OutputMode.composed, alias="outputMode")
    has_audio: bool = Field(default=True, alias="hasAudio")
    has_video: bool = Field(default=True, alias="hasVideo")
    resolution: str | None = None
    url: str | None = None

    @property
    def created_datetime(self) -> datetime | None:
        return from_unix_ms(self.created_at)

    @property
    def is_recording(self) -> bool:
        return self.status in {ArchiveStatus.started.value, ArchiveStatus.paused.value}


class ArchiveList(_ApiModel):
    count: int
    items: list[Archive] = Field(default_factory=list)


# =============================================================================
# ПРЕОБРАЗОВАНИЕ ОШИБОК
# =============================================================================
def build_request(model_cls: type[_M], data: Any = None, /, **kwargs: Any) -> _M:
    """
    Входные опции -> модель; ошибки pydantic -> ValidationError SDK.
    """
    if isinstance(data, model_cls):
        return data
    try:
        if data is None:
            return model_cls.model_validate(kwargs)
        return model_cls.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Некорректные параметры {model_cls.__name__}",
            details={"errors": e.errors(include_url=False, include_context=False)},
        ) from e


def parse_response(model_cls: type[_M], data: Any, *, operation: str) -> _M:
    """
    JSON ответа -> модель; несоответствие формы -> UnexpectedResponseError.
    """
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as e:
        raise UnexpectedResponseError(
            details={"operation": operation, "body": str(data)[:500], "err": str(e)[:500]}
        ) from e
