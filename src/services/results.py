"""Result types for operations that can fail in expected ways.

Loaders and client calls return ``Ok(value)`` or ``Err(message, code, status)``
instead of raising, so callers can branch on ``result.ok``::

    result = await queries.recipe_detail(recipe_id)
    if not result.ok:
        notifier.error(get_error_message(result.message, result.code))
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Literal, TypeVar

from fastapi import HTTPException

T = TypeVar("T")


class ErrorCode(str, Enum):
    """Symbolic failure categories shown to users."""

    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    SERVER_ERROR = "SERVER_ERROR"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T
    ok: Literal[True] = True


@dataclass(frozen=True)
class Err:
    """Failed outcome with a raw message and optional code/HTTP status."""

    message: str
    code: ErrorCode | None = None
    status: int | None = None
    ok: Literal[False] = False


ActionResult = Ok[T] | Err


_STATUS_CODES = {
    400: ErrorCode.VALIDATION_ERROR,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    422: ErrorCode.VALIDATION_ERROR,
}


def code_for_status(status: int) -> ErrorCode | None:
    """Map an HTTP status to the error code users see.

    Conflicts (409) carry a specific message from the server and get no code.
    """
    if status in _STATUS_CODES:
        return _STATUS_CODES[status]
    if status >= 500:
        return ErrorCode.SERVER_ERROR
    return None


def not_found(message: str = "Not Found") -> Err:
    return Err(message, ErrorCode.NOT_FOUND, 404)


def server_error(message: str = "Internal Server Error") -> Err:
    return Err(message, ErrorCode.SERVER_ERROR, 500)


def unwrap(result: "ActionResult[Any]") -> Any:
    """Return the value of a successful result or raise it as an HTTPException."""
    if result.ok:
        return result.value
    raise HTTPException(status_code=result.status or 500, detail=result.message)
