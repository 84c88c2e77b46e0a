"""Per-request access log for the BetABeer API.

One line per request on the `bb.request` logger. A request id is minted here,
stored on request.state (the response envelope echoes it) and returned as the
X-Request-ID header, so a client report can be matched to the server log.

    INFO [POST] /api/v1/groups/grp_1/bets/bet_1/resolve → 200 (12ms) req_a1b2c3d4e5f6

Server errors are logged at WARNING; the domain errors (4xx) are expected
traffic and stay at INFO.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("bb.request")

REQUEST_ID_HEADER = "X-Request-ID"


def new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = new_request_id()
        request.state.request_id = request_id

        started = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

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
