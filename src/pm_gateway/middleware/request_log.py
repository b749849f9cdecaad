"""Request logging middleware.

Logs every HTTP request with method, path, status code and latency, tagged
with a request ID. An incoming X-Request-ID header is reused (so IDs stay
stable across the proxy and this service); otherwise a short one is minted.
The ID lands on request.state for ApiResponse and is echoed back in the
X-Request-ID response header.

Log format:
    INFO [POST] /api/v1/auctions/42/bids → 201 (23ms) req_a1b2c3d4e5f6

5xx responses are logged at WARNING so they stand out from normal traffic.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("sp.request")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or f"req_{uuid.uuid4().hex[:12]}"
        request.state.request_id = request_id

        start = time.perf_counter()
        response: Response = await call_next(request)
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
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
