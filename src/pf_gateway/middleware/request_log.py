"""Per-request access log for the marketplace API.

Each request gets an id (see pf_common.response.new_request_id) stored on
request.state; routers and the AppError handler copy it into the
ApiResponse envelope so a client-reported id finds its log line.

Server errors log at WARNING, everything else at INFO:
    INFO [POST] /api/v1/listings → 201 (4ms) req_a1b2c3d4e5f6
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.pf_common.response import new_request_id

logger = logging.getLogger("pf.request")


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = new_request_id()
        request.state.request_id = request_id

        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "[%s] %s → %d (%.0fms) %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id,
        )
        return response
