"""Request logging middleware.

Logs every HTTP request with method, path, status code, latency and a
request ID. An inbound ``X-Request-ID`` (set by a proxy or the storefront)
is reused when it looks sane, so one checkout can be followed across
services; otherwise a fresh ``req_<hex>`` id is minted. The id is echoed in
the response header and in every ApiResponse envelope.

Log format:
    INFO [POST] /api/v1/checkout → 201 (23ms) req_a1b2c3d4e5f6
"""

import logging
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("mp.request")

REQUEST_ID_HEADER = "X-Request-ID"
_INBOUND_ID = re.compile(r"^[A-Za-z0-9_.-]{8,64}$")


def get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "req_unknown")


def resolve_request_id(inbound: str | None) -> str:
    if inbound and _INBOUND_ID.match(inbound):
        return inbound
    return f"req_{uuid.uuid4().hex[:12]}"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))

        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers[REQUEST_ID_HEADER] = request.state.request_id
        # health checks are noise at INFO
        level = logging.DEBUG if request.url.path == "/health" else logging.INFO
        logger.log(
            level,
            "[%s] %s → %d (%.0fms) %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request.state.request_id,
        )
        return response
