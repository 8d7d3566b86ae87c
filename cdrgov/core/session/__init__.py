from .models import (
    Abort,
    ApproveInsertion,
    Decision,
    FieldSlot,
    PendingDecision,
    SelectExisting,
    SessionState,
)
from .session import GovernanceSession
from .state_machine import allowed_next, can_transition, ensure_transition, is_terminal
from .store import SessionStore, sweep_stale_sessions

__all__ = [
    "Abort",
    "ApproveInsertion",
    "Decision",
    "FieldSlot",
    "GovernanceSession",
    "PendingDecision",
    "SelectExisting",
    "SessionState",
    "SessionStore",
    "allowed_next",
    "can_transition",
    "ensure_transition",
    "is_terminal",
    "sweep_stale_sessions",
]
