"""Environment-driven settings.

Every getter reads the environment at call time so tests can monkeypatch
variables without reloading modules. Malformed values fall back to defaults.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional


DEFAULT_SIMILARITY_THRESHOLD = 0.35
DEFAULT_MAX_SUGGESTIONS = 10
DEFAULT_APPROVAL_TTL_SECONDS = 3600  # 1 hour
DEFAULT_SESSION_RETENTION_SECONDS = 900
DEFAULT_AUDIT_PATH = Path(".cdrgov") / "audit.log"

_TRUTHY = ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return float(default)


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return int(default)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


def _env_path(name: str) -> Optional[Path]:
    raw = (os.getenv(name) or "").strip()
    return Path(raw) if raw else None


def env_name() -> str:
    return (os.getenv("CDRGOV_ENV") or "dev").strip().lower()


def similarity_threshold() -> float:
    v = _env_float("CDRGOV_SIMILARITY_THRESHOLD", DEFAULT_SIMILARITY_THRESHOLD)
    if not 0.0 < v <= 1.0:
        return DEFAULT_SIMILARITY_THRESHOLD
    return v


def max_suggestions() -> int:
    return max(1, _env_int("CDRGOV_MAX_SUGGESTIONS", DEFAULT_MAX_SUGGESTIONS))


def approval_ttl_seconds() -> float:
    return max(0.0, _env_float("CDRGOV_APPROVAL_TTL_SECONDS", DEFAULT_APPROVAL_TTL_SECONDS))


def session_retention_seconds() -> float:
    """How long a finished session stays readable before a sweep drops it."""
    return max(0.0, _env_float("CDRGOV_SESSION_RETENTION_SECONDS", DEFAULT_SESSION_RETENTION_SECONDS))


def warnings_block() -> bool:
    return _env_bool("CDRGOV_WARNINGS_BLOCK", True)


def dictionary_path() -> Optional[Path]:
    """JSON file backing the shared dictionary; None keeps it in memory."""
    return _env_path("CDRGOV_DICTIONARY_PATH")


def seed_path() -> Optional[Path]:
    """Optional CSV/JSON/YAML export loaded into an empty shared dictionary."""
    return _env_path("CDRGOV_SEED_PATH")


def audit_path() -> Path:
    return _env_path("CDRGOV_AUDIT_PATH") or DEFAULT_AUDIT_PATH
