import json
import logging
import logging.handlers
import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional

from cdrgov.core import config

# 10MB per file, 5 backups
_MAX_BYTES = 10 * 1024 * 1024  # 10MB
_BACKUP_COUNT = 5

_handler_cache: Dict[str, logging.Handler] = {}
_handler_lock = threading.Lock()


def _now_ms() -> int:
    return int(time.time() * 1000)


def _get_rotating_handler(audit_path: Path) -> logging.Handler:
    key = str(audit_path.resolve())
    with _handler_lock:
        if key not in _handler_cache:
            audit_path.parent.mkdir(parents=True, exist_ok=True)
            h = logging.handlers.RotatingFileHandler(
                str(audit_path),
                maxBytes=_MAX_BYTES,
                backupCount=_BACKUP_COUNT,
                encoding="utf-8",
            )
            h.setFormatter(logging.Formatter("%(message)s"))
            _handler_cache[key] = h
        return _handler_cache[key]


def audit_event(
    event_type: str,
    actor: Optional[str],
    extra: Optional[Dict[str, Any]] = None,
    session_id: Optional[str] = None,
    audit_path: Optional[Path] = None,
) -> None:
    record: Dict[str, Any] = {
        "ts_ms": _now_ms(),
        "type": event_type,
        "actor": actor,
        "session_id": session_id,
    }
    if extra:
        record["extra"] = extra

    line = json.dumps(record, separators=(",", ":"), ensure_ascii=False)

    handler = _get_rotating_handler(Path(audit_path) if audit_path else config.audit_path())
    log_record = logging.LogRecord(
        name="cdrgov.audit",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg=line,
        args=(),
        exc_info=None,
    )
    handler.emit(log_record)
    handler.flush()
