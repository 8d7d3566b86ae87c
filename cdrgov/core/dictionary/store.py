from __future__ import annotations

import json
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Protocol

from cdrgov.core.errors import PersistenceError, SlotConflictError

try:
    import fcntl as _fcntl
    _HAS_FCNTL = True
except ImportError:
    _HAS_FCNTL = False
    logging.getLogger("cdrgov.locking").warning(
        "fcntl not available (non-POSIX). File locking is disabled. "
        "Do not share a dictionary file between processes on this platform."
    )


class DictionaryStore(Protocol):
    """Row-level tabular storage behind a CanonicalDictionary."""

    def load_rows(self) -> List[Dict[str, Any]]:
        ...

    def write_row(self, slot: int, row: Dict[str, Any]) -> None:
        ...

    def read_row(self, slot: int) -> Optional[Dict[str, Any]]:
        ...

    def discard_row(self, slot: int) -> None:
        ...

    def size(self) -> int:
        ...


class MemoryStore:
    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None):
        self._rows: List[Dict[str, Any]] = [dict(r) for r in (rows or [])]
        self._lock = threading.Lock()

    def load_rows(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(r) for r in self._rows]

    def write_row(self, slot: int, row: Dict[str, Any]) -> None:
        with self._lock:
            if slot != len(self._rows):
                raise SlotConflictError(
                    f"slot {slot} is not the next free slot ({len(self._rows)})",
                    details={"slot": slot, "size": len(self._rows)},
                )
            self._rows.append(dict(row))

    def read_row(self, slot: int) -> Optional[Dict[str, Any]]:
        with self._lock:
            if 0 <= slot < len(self._rows):
                return dict(self._rows[slot])
            return None

    def discard_row(self, slot: int) -> None:
        with self._lock:
            if slot == len(self._rows) - 1:
                self._rows.pop()

    def size(self) -> int:
        with self._lock:
            return len(self._rows)


@contextmanager
def _locked(lock_path: Path) -> Generator:
    """Hold an exclusive flock on a sidecar lock file (POSIX only). No-op on Windows."""
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    with open(lock_path, "a", encoding="utf-8") as fh:
        if _HAS_FCNTL:
            _fcntl.flock(fh, _fcntl.LOCK_EX)
        try:
            yield fh
        finally:
            if _HAS_FCNTL:
                _fcntl.flock(fh, _fcntl.LOCK_UN)


class JsonFileStore:
    """
    Dictionary rows persisted as {"kind": "cdr", "rows": [...]}.

    Every mutation is a read-modify-write under the file lock, and write_row
    only succeeds when the file still ends at the reserved slot, so two
    processes can never claim the same slot.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock_path = self.path.with_name(self.path.name + ".lock")

    def _read(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            obj = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"dictionary file unreadable: {self.path}: {e}") from e
        rows = obj.get("rows") if isinstance(obj, dict) else None
        if not isinstance(rows, list):
            raise PersistenceError(f"dictionary file malformed: {self.path}")
        return [r for r in rows if isinstance(r, dict)]

    def _write(self, rows: List[Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps({"kind": "cdr", "rows": rows}, indent=2, sort_keys=True), encoding="utf-8")
        tmp.replace(self.path)

    def load_rows(self) -> List[Dict[str, Any]]:
        with _locked(self._lock_path):
            return self._read()

    def write_row(self, slot: int, row: Dict[str, Any]) -> None:
        with _locked(self._lock_path):
            rows = self._read()
            if slot != len(rows):
                raise SlotConflictError(
                    f"slot {slot} is not the next free slot ({len(rows)}) in {self.path}",
                    details={"slot": slot, "size": len(rows)},
                )
            rows.append(dict(row))
            try:
                self._write(rows)
            except OSError as e:
                raise PersistenceError(f"dictionary write failed: {e}") from e

    def read_row(self, slot: int) -> Optional[Dict[str, Any]]:
        with _locked(self._lock_path):
            rows = self._read()
        if 0 <= slot < len(rows):
            return rows[slot]
        return None

    def discard_row(self, slot: int) -> None:
        with _locked(self._lock_path):
            rows = self._read()
            if slot == len(rows) - 1:
                rows.pop()
                try:
                    self._write(rows)
                except OSError as e:
                    raise PersistenceError(f"dictionary discard of slot {slot} failed: {e}", details={"slot": slot}) from e

    def size(self) -> int:
        with _locked(self._lock_path):
            return len(self._read())
