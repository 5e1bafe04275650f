"""
Response envelope shared by every endpoint.

Every body has the shape ``{success, message, data?, error?}``; ``data`` and
``error`` are left out when they carry nothing.
"""

from typing import Any, Generic, Optional, TypeVar

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    success: bool
    message: str
    data: Optional[T] = None
    error: Optional[str] = None


def success_response(
    message: str,
    data: Any = None,
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    body: dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        body["data"] = jsonable_encoder(data)
    return JSONResponse(status_code=status_code, content=body)


def error_response(
    message: str,
    error: Optional[str] = None,
    status_code: int = status.HTTP_400_BAD_REQUEST,
    headers: Optional[dict[str, str]] = None,
    data: Any = None,
) -> JSONResponse:
    body: dict[str, Any] = {"success": False, "message": message}
    if data is not None:
        body["data"] = jsonable_encoder(data)
    if error is not None:
        body["error"] = error
    return JSONResponse(status_code=status_code, content=body, headers=headers)
