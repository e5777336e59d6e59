"""Error responses for the organizer API.

Every error is returned as a Result holding one or more Messages, so
clients parse a single error shape whether the failure came from request
validation, a domain rule, throttling or an unexpected exception.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import Enum

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel, Field

from organizer.services.errors import DuplicateTitleError, EntityNotFoundError, OrganizerError

logger = logging.getLogger(__name__)


class MessageType(str, Enum):
    """Type of message in error response."""

    ERROR = "Error"
    WARNING = "Warning"
    INFO = "Info"
    EXCEPTION = "Exception"


class Message(BaseModel):
    model_config = {"extra": "forbid", "populate_by_name": True}

    code: str
    message_type: MessageType = Field(alias="messageType")
    text: str
    timestamp: str | None = None


class Result(BaseModel):
    """Result wrapper for errors."""

    model_config = {"extra": "forbid"}

    messages: list[Message]


def _message(code: str, text: str, message_type: MessageType = MessageType.ERROR) -> Message:
    return Message(
        code=code,
        messageType=message_type,
        text=text,
        timestamp=datetime.now(UTC).isoformat(),
    )


class OrganizerApiError(HTTPException):
    """Base exception for API errors."""

    def __init__(
        self,
        status_code: int,
        code: str,
        text: str,
        message_type: MessageType = MessageType.ERROR,
        headers: dict[str, str] | None = None,
    ):
        self.code = code
        self.text = text
        self.message_type = message_type
        super().__init__(status_code=status_code, detail=text, headers=headers)

    def to_result(self) -> Result:
        return Result(messages=[_message(self.code, self.text, self.message_type)])


class NotFoundError(OrganizerApiError):
    """Resource not found (404)."""

    def __init__(self, text: str):
        super().__init__(status_code=404, code="NotFound", text=text)


class ConflictError(OrganizerApiError):
    """Resource already exists (409)."""

    def __init__(self, text: str):
        super().__init__(status_code=409, code="Conflict", text=text)


class TooManyRequestsError(OrganizerApiError):
    """Client exceeded its request budget (429)."""

    def __init__(self, retry_after: int):
        super().__init__(
            status_code=429,
            code="TooManyRequests",
            text="Too many requests. Try again later.",
            headers={"Retry-After": str(retry_after)},
        )


def error_response(exc: OrganizerApiError) -> ORJSONResponse:
    return ORJSONResponse(
        status_code=exc.status_code,
        content=exc.to_result().model_dump(by_alias=True),
        headers=exc.headers,
    )


def from_domain_error(exc: OrganizerError) -> OrganizerApiError:
    """Translate a service error into its API error."""
    if isinstance(exc, EntityNotFoundError):
        return NotFoundError(str(exc))
    if isinstance(exc, DuplicateTitleError):
        return ConflictError(str(exc))
    return OrganizerApiError(status_code=400, code="BadRequest", text=str(exc))


async def organizer_api_exception_handler(
    request: Request, exc: OrganizerApiError
) -> ORJSONResponse:
    return error_response(exc)


async def domain_exception_handler(request: Request, exc: OrganizerError) -> ORJSONResponse:
    return error_response(from_domain_error(exc))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> ORJSONResponse:
    """Report every invalid field as its own message under ValidationFailed."""
    messages = [
        _message(
            "ValidationFailed",
            f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}",
        )
        for error in exc.errors()
    ] or [_message("ValidationFailed", "Validation failed")]
    return ORJSONResponse(
        status_code=400,
        content=Result(messages=messages).model_dump(by_alias=True),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    """Exception handler for unexpected errors."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return ORJSONResponse(
        status_code=500,
        content=Result(
            messages=[
                _message(
                    "InternalServerError",
                    "An unexpected error occurred",
                    MessageType.EXCEPTION,
                )
            ]
        ).model_dump(by_alias=True),
    )
