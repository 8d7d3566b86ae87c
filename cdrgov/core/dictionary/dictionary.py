from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Generator, Iterable, List, Optional, Tuple

from cdrgov.core.errors import DuplicateError, PersistenceError, SlotConflictError

from .models import CdrRow
from .store import DictionaryStore, MemoryStore

log = logging.getLogger("cdrgov.dictionary")


class CanonicalDictionary:
    """
    In-memory, queryable view of the CDR table over a DictionaryStore.

    Readers work on snapshots and never take the lock. Every mutation goes
    through the single re-entrant write lock so that "reserve slot, then
    write" can never interleave with another writer in this process.
    """

    def __init__(self, store: Optional[DictionaryStore] = None):
        self._store: DictionaryStore = store if store is not None else MemoryStore()
        self._lock = threading.RLock()
        self._rows: List[CdrRow] = []
        self._by_key: Dict[Tuple[str, str, str], int] = {}
        self._by_uid: Dict[str, int] = {}
        self.reload()

    @classmethod
    def from_rows(cls, rows: Iterable[CdrRow], store: Optional[DictionaryStore] = None) -> "CanonicalDictionary":
        d = cls(store=store)
        for row in rows:
            d.append(row)
        return d

    @property
    def store(self) -> DictionaryStore:
        return self._store

    def reload(self) -> None:
        """Rebuild the in-memory index from the backing store."""
        with self._lock:
            rows: List[CdrRow] = []
            by_key: Dict[Tuple[str, str, str], int] = {}
            by_uid: Dict[str, int] = {}
            for raw in self._store.load_rows():
                row = CdrRow.from_dict(raw)
                if row.key in by_key or row.uid in by_uid:
                    raise DuplicateError(
                        f"backing store holds a duplicate row: {row.long_name} uid={row.uid}",
                        details={"long_name": row.long_name, "uid": row.uid},
                    )
                by_key[row.key] = len(rows)
                by_uid[row.uid] = len(rows)
                rows.append(row)
            self._rows, self._by_key, self._by_uid = rows, by_key, by_uid

    # --- reads ---

    def __len__(self) -> int:
        return len(self._rows)

    def rows(self) -> List[CdrRow]:
        return list(self._rows)

    def filter(self, concept: str, context: str) -> List[CdrRow]:
        return [r for r in list(self._rows) if r.concept == concept and r.context == context]

    def get(self, concept: str, context: str, data_requirement: str) -> Optional[CdrRow]:
        idx = self._by_key.get((concept, context, data_requirement))
        return self._rows[idx] if idx is not None else None

    def get_by_uid(self, uid: str) -> Optional[CdrRow]:
        idx = self._by_uid.get(uid)
        return self._rows[idx] if idx is not None else None

    def concepts(self) -> List[str]:
        seen: Dict[str, None] = {}
        for r in list(self._rows):
            seen.setdefault(r.concept, None)
        return list(seen)

    # --- writes ---

    @contextmanager
    def write_lock(self) -> Generator[None, None, None]:
        with self._lock:
            yield

    def next_available_slot(self) -> int:
        return len(self._rows)

    def ensure_unique(self, row: CdrRow) -> None:
        existing = self.get(row.concept, row.context, row.data_requirement)
        if existing is not None:
            raise DuplicateError(
                f"{row.long_name} already exists (uid={existing.uid})",
                details={"long_name": row.long_name, "existing_uid": existing.uid},
            )
        clash = self.get_by_uid(row.uid)
        if clash is not None:
            raise DuplicateError(
                f"uid {row.uid} is already used by {clash.long_name}",
                details={"uid": row.uid, "existing_long_name": clash.long_name},
            )

    def write_to_store(self, slot: int, row: CdrRow) -> None:
        with self._lock:
            expected = self.next_available_slot()
            if slot != expected:
                raise SlotConflictError(
                    f"slot {slot} was reserved but the next free slot is {expected}",
                    details={"slot": slot, "expected": expected},
                )
            stored = self._store.size()
            if stored != expected:
                raise SlotConflictError(
                    f"backing store grew to {stored} rows; reload before writing slot {slot}",
                    details={"slot": slot, "store_size": stored},
                )
            try:
                self._store.write_row(slot, row.to_dict())
            except PersistenceError:
                raise
            except Exception as e:
                raise PersistenceError(f"write of slot {slot} failed: {e}", details={"slot": slot}) from e

    def read_back(self, slot: int) -> Optional[CdrRow]:
        raw = self._store.read_row(slot)
        if raw is None:
            return None
        try:
            return CdrRow.from_dict(raw)
        except ValueError:
            return None

    def discard(self, slot: int) -> None:
        """Drop an unconfirmed write; published rows are never removed."""
        with self._lock:
            if slot < len(self._rows):
                raise PersistenceError(f"slot {slot} is published and cannot be discarded")
            self._store.discard_row(slot)

    def publish(self, slot: int, row: CdrRow) -> None:
        with self._lock:
            if slot != len(self._rows):
                raise SlotConflictError(f"cannot publish slot {slot}; next slot is {len(self._rows)}")
            self._rows.append(row)
            self._by_key[row.key] = slot
            self._by_uid[row.uid] = slot

    def append(self, row: CdrRow) -> int:
        with self._lock:
            self.ensure_unique(row)
            slot = self.next_available_slot()
            self.write_to_store(slot, row)
            self.publish(slot, row)
        log.debug("dictionary.append slot=%s long_name=%s uid=%s", slot, row.long_name, row.uid)
        return slot
