"""ApiResponse envelope shared by every /api/v1 endpoint.

Success: code 0, `data` holds the payload (session, profile, listing page...).
Failure: `code` is the AppError code (1xxx identity, 3xxx listing, 4xxx form,
9xxx system). For 4001 `data` carries {"field_errors", "step"} so a client
can reopen the creation form on the earliest failing step.

`request_id` matches the id RequestLogMiddleware logs for the same request.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


def new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str = Field(default_factory=new_request_id)


def success_response(
    data: Any = None, message: str = "success", request_id: str | None = None
) -> ApiResponse:
    resp = ApiResponse(code=0, message=message, data=data)
    if request_id:
        resp.request_id = request_id
    return resp


def error_response(
    code: int, message: str, data: Any = None, request_id: str | None = None
) -> ApiResponse:
    resp = ApiResponse(code=code, message=message, data=data)
    if request_id:
        resp.request_id = request_id
    return resp
