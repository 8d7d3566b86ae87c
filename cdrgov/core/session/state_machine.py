from __future__ import annotations

from typing import Dict, Set, Tuple

from cdrgov.core.errors import IllegalTransitionError

from .models import SessionState


_ALLOWED: Set[Tuple[SessionState, SessionState]] = {
    (SessionState.COLLECTING, SessionState.RESOLVING),
    (SessionState.RESOLVING, SessionState.AWAITING_APPROVAL),
    (SessionState.AWAITING_APPROVAL, SessionState.RESOLVING),
    (SessionState.RESOLVING, SessionState.VALIDATING),
    (SessionState.VALIDATING, SessionState.READY),
    (SessionState.VALIDATING, SessionState.REJECTED),

    # suspension without a decision
    (SessionState.AWAITING_APPROVAL, SessionState.EXPIRED),

    # cancel from any active state
    (SessionState.COLLECTING, SessionState.CANCELED),
    (SessionState.RESOLVING, SessionState.CANCELED),
    (SessionState.AWAITING_APPROVAL, SessionState.CANCELED),
    (SessionState.VALIDATING, SessionState.CANCELED),
}

_TERMINAL: Set[SessionState] = {
    SessionState.READY,
    SessionState.REJECTED,
    SessionState.CANCELED,
    SessionState.EXPIRED,
}


def is_terminal(state: SessionState) -> bool:
    return state in _TERMINAL


def can_transition(src: SessionState, dst: SessionState) -> bool:
    if src == dst:
        return True
    if src in _TERMINAL:
        return False
    return (src, dst) in _ALLOWED


def ensure_transition(src: SessionState, dst: SessionState) -> None:
    if not can_transition(src, dst):
        raise IllegalTransitionError(
            f"Illegal transition: {src.value} -> {dst.value}",
            details={"from": src.value, "to": dst.value},
        )


def allowed_next(src: SessionState) -> Dict[str, bool]:
    out: Dict[str, bool] = {}
    for a, b in _ALLOWED:
        if a == src:
            out[b.value] = True
    return out
