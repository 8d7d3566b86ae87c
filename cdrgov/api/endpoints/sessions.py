"""Human decision channel: create, drive, decide on and cancel governance sessions."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, HTTPException

from cdrgov.api.observability.metrics import SESSION_DECISIONS_TOTAL
from cdrgov.api.schemas import DecisionRequest
from cdrgov.api.state import get_shared_dictionary, get_shared_sessions
from cdrgov.core.document import DocumentSkeleton
from cdrgov.core.errors import GovernanceError
from cdrgov.core.session import GovernanceSession, sweep_stale_sessions

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _get_or_404(session_id: str) -> GovernanceSession:
    session = get_shared_sessions().get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="session_not_found")
    return session


@router.post("", status_code=201)
def create_session(skeleton: DocumentSkeleton) -> Dict[str, Any]:
    session = GovernanceSession(get_shared_dictionary())
    session.collect(skeleton)
    session.run()
    get_shared_sessions().put(session)
    return session.to_dict()


@router.get("/{session_id}")
def get_session(session_id: str) -> Dict[str, Any]:
    return _get_or_404(session_id).to_dict()


@router.post("/{session_id}/decision")
def decide(session_id: str, req: DecisionRequest) -> Dict[str, Any]:
    session = _get_or_404(session_id)
    try:
        session.decide(req.to_decision())
    except GovernanceError as exc:
        SESSION_DECISIONS_TOTAL.labels(action=req.action, outcome=exc.code).inc()
        raise
    SESSION_DECISIONS_TOTAL.labels(action=req.action, outcome="accepted").inc()
    return session.to_dict()


@router.delete("/{session_id}")
def cancel_session(session_id: str) -> Dict[str, Any]:
    session = _get_or_404(session_id)
    session.cancel(reason="canceled_by_client")
    return session.to_dict()


@router.get("/{session_id}/document")
def get_document(session_id: str) -> Dict[str, Any]:
    session = _get_or_404(session_id)
    return session.document().model_dump()


@router.post("/sweep")
def sweep() -> Dict[str, Any]:
    store = get_shared_sessions()
    expired = sweep_stale_sessions(store)
    return {"expired": expired, "live_sessions": len(store)}
