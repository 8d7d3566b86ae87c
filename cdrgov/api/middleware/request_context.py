from __future__ import annotations

import logging
import time
import uuid
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from cdrgov.api.observability.metrics import (
    HTTP_REQUEST_DURATION_SECONDS,
    HTTP_REQUESTS_TOTAL,
    normalize_path,
    session_id_from_path,
)

log = logging.getLogger("cdrgov.request")

REQUEST_ID_HEADER = "X-Request-Id"


def _record(request: Request, status_code: int, elapsed: float) -> None:
    route = normalize_path(request.url.path)
    method = request.method.upper()
    HTTP_REQUESTS_TOTAL.labels(method=method, path=route, status=str(status_code)).inc()
    HTTP_REQUEST_DURATION_SECONDS.labels(method=method, path=route).observe(elapsed)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an id and records it.

    The id comes from the caller's X-Request-Id header when present, is exposed
    as request.state.request_id and is echoed on the response. API calls also
    produce one structured log line carrying the session id when the route
    addresses a session.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = rid

        t0 = time.perf_counter()
        resp = await call_next(request)
        elapsed = time.perf_counter() - t0

        resp.headers[REQUEST_ID_HEADER] = rid
        _record(request, resp.status_code, elapsed)

        path = request.url.path
        if path.startswith("/api/"):
            record = {
                "event": "request",
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status_code": resp.status_code,
                "duration_ms": round(elapsed * 1000, 2),
            }
            sid = session_id_from_path(path)
            if sid:
                record["session_id"] = sid
            log.info("%s", record)
        return resp
