"""Error responses for the tiercache HTTP API.

Every error is returned as a Result/Message envelope:

    {"messages": [{"code": "NotFound", "messageType": "Error",
                   "text": "...", "timestamp": "..."}]}
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from tiercache.errors import (
    CacheUnavailableError,
    InvalidKeyError,
    NotFoundError,
    SourceUnavailableError,
    TierCacheError,
)


class MessageType(str, Enum):
    """Type of message in error response."""

    ERROR = "Error"
    WARNING = "Warning"
    INFO = "Info"
    EXCEPTION = "Exception"


class Message(BaseModel):
    """Single error message."""

    model_config = {"extra": "forbid", "populate_by_name": True}

    code: str
    message_type: MessageType = Field(alias="messageType")
    text: str
    timestamp: str | None = None


class Result(BaseModel):
    """Result wrapper for errors."""

    model_config = {"extra": "forbid"}

    messages: list[Message]


# Domain error -> HTTP status
STATUS_CODES: dict[type[TierCacheError], int] = {
    NotFoundError: 404,
    InvalidKeyError: 400,
    SourceUnavailableError: 503,
    CacheUnavailableError: 503,
}


def status_for(exc: TierCacheError) -> int:
    for error_type, status_code in STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status_code
    return 500


def error_result(code: str, text: str, message_type: MessageType = MessageType.ERROR) -> Result:
    return Result(
        messages=[
            Message(
                code=code,
                messageType=message_type,
                text=text,
                timestamp=datetime.now(UTC).isoformat(),
            )
        ]
    )


async def tiercache_exception_handler(request: Request, exc: TierCacheError) -> JSONResponse:
    """Exception handler for domain errors."""
    status_code = status_for(exc)
    headers = {"Retry-After": "1"} if isinstance(exc, SourceUnavailableError) else None
    return JSONResponse(
        status_code=status_code,
        content=error_result(exc.code, exc.text).model_dump(by_alias=True),
        headers=headers,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Exception handler for unexpected errors."""
    return JSONResponse(
        status_code=500,
        content=error_result(
            "InternalServerError",
            "An unexpected error occurred",
            MessageType.EXCEPTION,
        ).model_dump(by_alias=True),
    )
