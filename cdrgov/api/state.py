"""
Process-wide dictionary and session registry shared by the HTTP endpoints.

Both are rebuilt whenever the configured dictionary or seed path changes, so
tests can point the app at a fresh tmp directory through the environment.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional, Tuple

from cdrgov.core import config
from cdrgov.core.dictionary import CanonicalDictionary, JsonFileStore, MemoryStore, load_rows
from cdrgov.core.session import SessionStore

log = logging.getLogger("cdrgov.api.state")

_Key = Tuple[Optional[Path], Optional[Path]]

_SHARED_DICTIONARY: Optional[CanonicalDictionary] = None
_SHARED_SESSIONS: Optional[SessionStore] = None
_SHARED_KEY: Optional[_Key] = None
_SHARED_LOCK = threading.Lock()


def _build_dictionary(path: Optional[Path], seed: Optional[Path]) -> CanonicalDictionary:
    store = JsonFileStore(path) if path is not None else MemoryStore()
    d = CanonicalDictionary(store=store)
    if seed is not None and len(d) == 0:
        rows = load_rows(seed)
        for row in rows:
            d.append(row)
        log.info("seeded dictionary from %s rows=%s", seed, len(rows))
    return d


def _ensure_current() -> None:
    global _SHARED_DICTIONARY, _SHARED_SESSIONS, _SHARED_KEY
    key: _Key = (config.dictionary_path(), config.seed_path())
    if _SHARED_DICTIONARY is None or _SHARED_KEY != key:
        _SHARED_DICTIONARY = _build_dictionary(*key)
        _SHARED_SESSIONS = SessionStore()
        _SHARED_KEY = key


def get_shared_dictionary() -> CanonicalDictionary:
    with _SHARED_LOCK:
        _ensure_current()
        assert _SHARED_DICTIONARY is not None
        return _SHARED_DICTIONARY


def get_shared_sessions() -> SessionStore:
    with _SHARED_LOCK:
        _ensure_current()
        assert _SHARED_SESSIONS is not None
        return _SHARED_SESSIONS


def reset_shared_state() -> None:
    """Test helper: drop the shared dictionary and every live session."""
    global _SHARED_DICTIONARY, _SHARED_SESSIONS, _SHARED_KEY
    with _SHARED_LOCK:
        _SHARED_DICTIONARY = None
        _SHARED_SESSIONS = None
        _SHARED_KEY = None
