"""
Response envelope shared by every JSON route.

Shape: `{success, data?, error?, message?, timestamp, requestId}`; optional
keys are omitted rather than sent as null.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from perfmock.generation.synthesizer import format_timestamp

REQUEST_ID_HEADER = "X-Request-ID"


def utc_now_iso() -> str:
    return format_timestamp(datetime.now(timezone.utc))


def new_request_id() -> str:
    return str(uuid.uuid4())


def request_id_of(request: Request) -> str:
    """Id assigned by the request pipeline, or the inbound header, or 'unknown'."""
    request_id = getattr(request.state, "request_id", None)
    return request_id or request.headers.get(REQUEST_ID_HEADER, "unknown")


def envelope(
    request: Request,
    *,
    success: bool = True,
    data: Any = None,
    error: Optional[str] = None,
    message: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": success}
    if data is not None:
        body["data"] = data
    if error is not None:
        body["error"] = error
    if message is not None:
        body["message"] = message
    body.update(extra)
    body["timestamp"] = utc_now_iso()
    body["requestId"] = request_id_of(request)
    return body


def error_response(
    request: Request,
    status_code: int,
    error: str,
    message: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    **extra: Any,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=envelope(request, success=False, error=error, message=message, **extra),
        headers=headers,
    )


def error_label(error_type: str) -> str:
    """'server_error' -> 'SERVER ERROR'."""
    return error_type.replace("_", " ").upper()


__all__ = [
    "REQUEST_ID_HEADER",
    "envelope",
    "error_label",
    "error_response",
    "new_request_id",
    "request_id_of",
    "utc_now_iso",
]
