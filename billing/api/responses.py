"""
JSON envelope shared by every endpoint.

Success: ``{"success": true, "data": ...}``.
Error: ``{"success": false, "error": {"code", "message"}, "timestamp"}``.
"""
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from starlette.responses import JSONResponse


class ApiError(Exception):
    """Raised by route handlers; rendered by the application exception handler."""

    def __init__(self, status_code: int, code: str, message: str, extra: Optional[dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.extra = extra or {}


def timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def success(data: Any, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse({"success": True, "data": jsonable_encoder(data)}, status_code=status_code)


def created(data: Any) -> JSONResponse:
    return success(data, status.HTTP_201_CREATED)


def error_response(status_code: int, code: str, message: str, extra: Optional[dict] = None) -> JSONResponse:
    body = {"success": False, "error": {"code": code, "message": message, **(extra or {})}, "timestamp": timestamp()}
    return JSONResponse(body, status_code=status_code)


def not_found(entity: str, message: str) -> ApiError:
    return ApiError(status.HTTP_404_NOT_FOUND, f"{entity}_not_found", message)


def bad_request(code: str, message: str) -> ApiError:
    return ApiError(status.HTTP_400_BAD_REQUEST, code, message)
