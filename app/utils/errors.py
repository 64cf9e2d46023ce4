"""Error taxonomy and helpers for standardized response envelopes."""
from __future__ import annotations

from typing import Any

from fastapi import status


def error_response(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    """Return a standardized error payload."""

    payload: dict[str, Any] = {
        "success": False,
        "message": message,
        "error": {"code": code, "message": message},
    }
    if details:
        payload["error"]["details"] = details
    return payload


def success_response(data: Any, message: str) -> dict[str, Any]:
    """Return a standardized success payload."""

    return {"success": True, "message": message, "data": data}


class ApiError(Exception):
    """Base for errors surfaced to API clients through the error envelope."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_SERVER_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        super().__init__(message)

    def to_payload(self) -> dict[str, Any]:
        return error_response(self.code, self.message, self.details)


class ValidationError(ApiError):
    """Malformed input (dates, pagination, retention window)."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, *, field: str | None = None, **kwargs: Any) -> None:
        if field is not None and "details" not in kwargs:
            kwargs["details"] = {"field": field}
        super().__init__(message, **kwargs)


class AuthorizationError(ApiError):
    """Missing tenant or feature-gate denial."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class NotFoundError(ApiError):
    """Record absent or owned by another tenant. Both cases look the same."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class StoreError(ApiError):
    """Persistence failure. The public message never carries the driver detail."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "STORE_ERROR"

    def __init__(self, message: str = "A storage error occurred.", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


__all__ = [
    "ApiError",
    "AuthorizationError",
    "NotFoundError",
    "StoreError",
    "ValidationError",
    "error_response",
    "success_response",
]
