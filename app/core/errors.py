"""
Custom exception hierarchy for the Echos API.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class EchosException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidDateFormatError(EchosException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "INVALID_DATE_FORMAT"

    def __init__(self, value: Any):
        super().__init__(
            message=f"Invalid date string: {value!r}. Expected YYYY-MM-DD.",
            details={"value": str(value)},
        )


class ReflectionNotFoundError(EchosException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"

    def __init__(self, kind: str, key: Any):
        super().__init__(
            message=f"No {kind} reflection found for {key}.",
            details={"kind": kind, "key": str(key)},
        )


class NoDataForPeriodError(EchosException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "NO_DATA_FOR_PERIOD"

    def __init__(self, mode: str, start: date, end: date):
        if start == end:
            message = f"No daily summary found for {start}."
        else:
            message = f"No daily summaries found for {mode} period {start} → {end}."
        super().__init__(
            message=message,
            details={"mode": mode, "start": str(start), "end": str(end)},
        )


class GenerationFailedError(EchosException):
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "GENERATION_FAILED"

    def __init__(self, message: str, raw: str | None = None):
        super().__init__(
            message=message,
            details={"raw": raw} if raw else {},
        )


class SchemaValidationFailedError(EchosException):
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "SCHEMA_VALIDATION_FAILED"

    def __init__(self, errors: list[dict[str, Any]]):
        super().__init__(
            message="Model output does not match the reflection schema.",
            details={"errors": errors},
        )


class ModelNotConfiguredError(EchosException):
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "MODEL_NOT_CONFIGURED"

    def __init__(self):
        super().__init__(message="OPENAI_API_KEY is not configured.")


class RangeRequiredError(EchosException):
    http_status = status.HTTP_400_BAD_REQUEST
    code = "RANGE_REQUIRED"

    def __init__(self):
        super().__init__(message="scope=custom requires a range with start and end.")


class UnauthorizedError(EchosException):
    http_status = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"

    def __init__(self):
        super().__init__(message="Missing authenticated user.")


class UntrustedOriginError(EchosException):
    http_status = status.HTTP_403_FORBIDDEN
    code = "UNTRUSTED_ORIGIN"

    def __init__(self):
        super().__init__(message="Invalid request origin.")


class SearchQuotaExceededError(EchosException):
    http_status = status.HTTP_429_TOO_MANY_REQUESTS
    code = "SEARCH_QUOTA_EXCEEDED"

    def __init__(self, limit: int):
        super().__init__(
            message="Daily search limit reached.",
            details={"limit": limit, "remaining": 0},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def echos_exception_handler(request: Request, exc: EchosException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
