"""Response envelope helpers shared by the HTTP routers.

Every response body has the shape `{success, data?, error?, ...}`.
"""

from collections.abc import Sequence
from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel

from src.core.config import Constants


def serialize(data: Any) -> Any:
    """Convert models (or lists of models) into camelCase JSON-ready values."""
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True, mode="json")
    if isinstance(data, Sequence) and not isinstance(data, str | bytes):
        return [serialize(item) for item in data]
    return data


def success_response(
    data: Any = None,
    *,
    status_code: int = Constants.HTTP_OK,
    **extra: Any,
) -> JSONResponse:
    """Build a success envelope."""
    content: dict[str, Any] = {"success": True, "data": serialize(data)}
    content.update(extra)
    return JSONResponse(content=content, status_code=status_code)


def error_response(message: str, *, status_code: int, code: str | None = None) -> JSONResponse:
    """Build an error envelope."""
    content: dict[str, Any] = {"success": False, "error": message}
    if code is not None:
        content["code"] = code
    return JSONResponse(content=content, status_code=status_code)
