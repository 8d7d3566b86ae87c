from __future__ import annotations

import logging
import traceback
from typing import Callable, Dict, Type

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from cdrgov.core.errors import (
    DuplicateError,
    GovernanceError,
    IllegalTransitionError,
    InvalidDecisionError,
    InvalidRowError,
    PersistenceError,
    SessionExpiredError,
    UnresolvedFieldError,
    ValidationFailure,
)

log = logging.getLogger("cdrgov.errors")

# Most specific first; the first isinstance match wins.
ERROR_STATUS: Dict[Type[GovernanceError], int] = {
    DuplicateError: 409,
    PersistenceError: 503,
    InvalidDecisionError: 400,
    InvalidRowError: 400,
    IllegalTransitionError: 409,
    SessionExpiredError: 410,
    ValidationFailure: 422,
    UnresolvedFieldError: 422,
}


def status_for(exc: GovernanceError) -> int:
    for cls, status in ERROR_STATUS.items():
        if isinstance(exc, cls):
            return status
    return 400


async def governance_error_handler(request: Request, exc: GovernanceError) -> JSONResponse:
    status = status_for(exc)
    rid = getattr(request.state, "request_id", None)
    log.info("governance error code=%s status=%s rid=%s path=%s", exc.code, status, rid, request.url.path)
    payload = {"detail": exc.to_dict()}
    if rid:
        payload["request_id"] = rid
    return JSONResponse(status_code=status, content=payload)


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """
    - Never return stack traces to clients
    - Preserve request_id if present
    - Log traceback server-side
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            rid = getattr(request.state, "request_id", None) or request.headers.get("x-request-id")
            log.error(
                "Unhandled error: %s rid=%s path=%s\n%s",
                str(e),
                rid,
                request.url.path,
                traceback.format_exc(),
            )
            payload = {"detail": "Internal Server Error"}
            if rid:
                payload["request_id"] = rid
            return JSONResponse(status_code=500, content=payload)
