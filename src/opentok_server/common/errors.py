"""
Единые ошибки и коды ошибок SDK.

Назначение:
- предсказуемые коды для вызывающего кода
- четыре класса проблем: вход, подпись, транспорт, ответ OpenTok
- ничего не ретраится, ошибка сразу уходит вызывающему
"""

from __future__ import annotations

from dataclasses import dataclass


class ErrCode:
    # Общие
    UNKNOWN = "unknown"
    VALIDATION = "validation"

    # Подпись токенов / auth header
    SIGNING_ERROR = "signing_error"
    INVALID_TOKEN = "invalid_token"

    # Транспорт / REST API
    TRANSPORT_ERROR = "transport_error"
    BAD_REQUEST = "bad_request"
    SERVER_ERROR = "server_error"
    UNEXPECTED_RESPONSE = "unexpected_response"


@dataclass
class AppError(Exception):
    """
    Базовая ошибка SDK.
    - code: стабильный код ошибки
    - message: безопасное сообщение
    - details: доп. данные (без секретов)
    """

    code: str
    message: str
    details: dict | None = None

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code}: {self.message}"


class ValidationError(AppError):
    def __init__(self, message: str = "Ошибка валидации", details: dict | None = None) -> None:
        super().__init__(ErrCode.VALIDATION, message, details)


class SigningError(AppError):
    def __init__(self, message: str = "Не удалось подписать JWT", details: dict | None = None) -> None:
        super().__init__(ErrCode.SIGNING_ERROR, message, details)


class InvalidTokenError(AppError):
    def __init__(self, message: str = "Токен не прошёл проверку", details: dict | None = None) -> None:
        super().__init__(ErrCode.INVALID_TOKEN, message, details)


class TransportError(AppError):
    def __init__(
        self, message: str = "Ошибка обращения к OpenTok API", details: dict | None = None
    ) -> None:
        super().__init__(ErrCode.TRANSPORT_ERROR, message, details)


class UnexpectedResponseError(AppError):
    def __init__(
        self, message: str = "Неожиданный ответ OpenTok API", details: dict | None = None
    ) -> None:
        super().__init__(ErrCode.UNEXPECTED_RESPONSE, message, details)


class ApiError(AppError):
    """
    Ответ OpenTok с non-2xx статусом.
    """

    def __init__(
        self,
        code: str,
        message: str,
        *,
        status_code: int,
        details: dict | None = None,
    ) -> None:
        super().__init__(code, message, details)
        self.status_code = status_code


class BadRequestError(ApiError):
    def __init__(self, message: str, *, status_code: int, details: dict | None = None) -> None:
        super().__init__(ErrCode.BAD_REQUEST, message, status_code=status_code, details=details)


class ServerError(ApiError):
    def __init__(self, message: str, *, status_code: int, details: dict | None = None) -> None:
        super().__init__(ErrCode.SERVER_ERROR, message, status_code=status_code, details=details)


def api_error_from_status(status_code: int, body: str) -> ApiError:
    """
    4xx -> BadRequestError, 5xx -> ServerError, остальное -> ApiError(unknown).
    """
    details = {"status": status_code, "body": body}
    if 400 <= status_code <= 499:
        return BadRequestError(f"Bad request {body}", status_code=status_code, details=details)
    if 500 <= status_code <= 599:
        return ServerError(f"OpenTok server error {body}", status_code=status_code, details=details)
    return ApiError(ErrCode.UNKNOWN, "Unknown error", status_code=status_code, details=details)
