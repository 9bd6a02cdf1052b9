"""Success envelope helpers shared by all routers."""

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def envelope(data: Any = None, message: str | None = None, **extra: Any) -> dict[str, Any]:
    """
    Build the JSON-ready success envelope.

    Pydantic models are dumped by alias (camelCase), datetimes become ISO
    strings and UUIDs become strings.
    """
    content: dict[str, Any] = {"success": True}
    if data is not None:
        content["data"] = data
    if message:
        content["message"] = message
    content.update({key: value for key, value in extra.items() if value is not None})
    return jsonable_encoder(content, by_alias=True)


def success_response(
    data: Any = None,
    status_code: int = 200,
    message: str | None = None,
    **extra: Any,
) -> JSONResponse:
    """Return ``{"success": true, "data": ...}`` with any extra top-level keys."""
    return JSONResponse(
        status_code=status_code,
        content=envelope(data, message=message, **extra),
    )
