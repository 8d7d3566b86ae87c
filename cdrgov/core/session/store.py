from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

from cdrgov.core import config

from .session import GovernanceSession
from .state_machine import is_terminal

log = logging.getLogger("cdrgov.session")


class SessionStore:
    """
    Shared in-memory registry of live governance sessions.

    Sessions hold unresolved drafts and are never persisted; a restart drops them.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._sessions: Dict[str, GovernanceSession] = {}

    def put(self, session: GovernanceSession) -> None:
        with self._lock:
            self._sessions[session.session_id] = session

    def get(self, session_id: str) -> Optional[GovernanceSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def remove(self, session_id: str) -> Optional[GovernanceSession]:
        with self._lock:
            return self._sessions.pop(session_id, None)

    def list(self) -> Dict[str, GovernanceSession]:
        with self._lock:
            return dict(self._sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


def sweep_stale_sessions(store: SessionStore, *, retention_seconds: Optional[float] = None) -> List[str]:
    """
    Expire every session that has waited on a decision longer than its TTL,
    then drop finished sessions idle for longer than the retention window.

    Returns the ids expired by this sweep.
    """
    retention = config.session_retention_seconds() if retention_seconds is None else float(retention_seconds)
    expired: List[str] = []
    removed: List[str] = []
    for session_id, session in store.list().items():
        if not is_terminal(session.state):
            if session.expire_if_stale():
                expired.append(session_id)
            continue
        if session.idle_seconds() > retention:
            store.remove(session_id)
            removed.append(session_id)
    if expired or removed:
        log.info("session sweep expired=%s removed=%s live=%s", len(expired), len(removed), len(store))
    return expired
