"""ApiResponse envelope shared by the credits, admin and notification routes.

Success and failure use the same shape, so clients branch on `code` (0 for
success, otherwise an AppError code such as 2003 for insufficient credits):

    {"code": 0, "message": "success", "data": {...},
     "timestamp": "2026-01-01T00:00:00+00:00", "request_id": "req_..."}

`request_id` is the one assigned by RequestLogMiddleware when a request is
passed in, so a response can be matched to its `cl.request` log line.
"""

import uuid
from typing import Any

from fastapi import Request
from pydantic import BaseModel, Field

from src.cl_common.datetime_utils import utc_now


def _new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
    request_id: str = Field(default_factory=_new_request_id)


def _request_id(request: Request | None) -> str:
    if request is None:
        return _new_request_id()
    return getattr(request.state, "request_id", None) or _new_request_id()


def success_response(data: Any = None, request: Request | None = None) -> ApiResponse:
    return ApiResponse(data=data, request_id=_request_id(request))


def error_response(code: int, message: str, request: Request | None = None) -> ApiResponse:
    return ApiResponse(code=code, message=message, data=None, request_id=_request_id(request))
