from __future__ import annotations

from fastapi import APIRouter
from starlette.responses import JSONResponse

from cdrgov.api.state import get_shared_dictionary
from cdrgov.core import config
from cdrgov.core.errors import GovernanceError
from cdrgov.core.observability.metrics import inc_named

router = APIRouter()


@router.get("/health/live")
async def live():
    inc_named("health_live")
    return {"status": "ok"}


@router.get("/api/v1/health/live")
def liveness():
    inc_named("health_live")
    return {"status": "alive"}


@router.get("/api/v1/health/ready")
def readiness():
    """
    Ready once the canonical dictionary loads from its backing store.
    """
    inc_named("health_ready")
    problems: list[str] = []

    try:
        rows = len(get_shared_dictionary())
    except (GovernanceError, OSError) as e:
        problems.append(f"dictionary_unavailable:{type(e).__name__}")
        rows = 0

    if problems:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "problems": problems},
        )

    return {"status": "ready", "env": config.env_name(), "rows": rows}
