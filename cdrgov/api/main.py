from __future__ import annotations

import logging

from fastapi import FastAPI

from cdrgov.api.endpoints import dictionary, health, resolve, sessions, validate
from cdrgov.api.endpoints import metrics as metrics_ep
from cdrgov.api.middleware.error_shaping import SafeErrorMiddleware, governance_error_handler
from cdrgov.api.middleware.request_context import RequestContextMiddleware
from cdrgov.core import config
from cdrgov.core.errors import GovernanceError

log = logging.getLogger("cdrgov.api")

app = FastAPI(
    title="CDR Governance API",
    version="0.1.0",
)

# ------------------------------------------------------------
# Middleware stack (ORDER MATTERS)
# Starlette reverses add_middleware order: the LAST call is the OUTERMOST wrapper.
#   SafeErrorMiddleware -> RequestContext -> handler
# ------------------------------------------------------------
app.add_middleware(RequestContextMiddleware)
app.add_middleware(SafeErrorMiddleware)

app.add_exception_handler(GovernanceError, governance_error_handler)

# ------------------------------------------------------------
# Versioned API
# ------------------------------------------------------------
API_PREFIX = "/api/v1"

app.include_router(dictionary.router, prefix=API_PREFIX)
app.include_router(resolve.router, prefix=API_PREFIX)
app.include_router(validate.router, prefix=API_PREFIX)
app.include_router(sessions.router, prefix=API_PREFIX)

# health + metrics define their own absolute paths
app.include_router(health.router)
app.include_router(metrics_ep.router)

log.info("cdrgov api configured env=%s", config.env_name())
