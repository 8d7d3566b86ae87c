from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from cdrgov.api.state import get_shared_dictionary, get_shared_sessions
from cdrgov.core.observability.metrics import snapshot_named

router = APIRouter()


@router.get("/api/v1/metrics/snapshot")
def metrics_snapshot():
    body = {"counters": snapshot_named()}
    body["dictionary_rows"] = len(get_shared_dictionary())
    body["live_sessions"] = len(get_shared_sessions())
    return body


@router.get("/metrics", include_in_schema=False)
def prometheus_metrics() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
