"""Human-approved insertion of new canonical rows."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from cdrgov.core.dictionary.dictionary import CanonicalDictionary
from cdrgov.core.dictionary.models import CdrRow, check_long_name
from cdrgov.core.errors import DuplicateError, InvalidRowError, PersistenceError
from cdrgov.core.observability.audit import audit_event
from cdrgov.core.observability.metrics import inc_insertion

log = logging.getLogger("cdrgov.insertion")


@dataclass(frozen=True)
class InsertionRequest:
    concept: str
    context: str
    field_name: str
    definition: str
    data_type: str
    uid: str
    long_name: Optional[str] = None
    approver: Optional[str] = None

    def to_row(self) -> CdrRow:
        # uid is supplied by the approver; it is never generated here
        for name in ("concept", "context", "field_name", "definition", "data_type", "uid"):
            v = getattr(self, name)
            if not isinstance(v, str) or not v.strip():
                raise InvalidRowError(f"{name} is required for an insertion", details={"field": name})
        row = CdrRow(
            concept=self.concept,
            context=self.context,
            data_requirement=self.field_name,
            definition=self.definition,
            data_type=self.data_type,
            uid=self.uid,
        )
        check_long_name(row, self.long_name)
        return row


class InsertionCoordinator:
    def __init__(
        self,
        dictionary: CanonicalDictionary,
        *,
        audit_path: Optional[Path] = None,
    ):
        self._dictionary = dictionary
        self._audit_path = audit_path

    def _discard_unconfirmed(self, slot: int) -> None:
        try:
            self._dictionary.discard(slot)
        except (PersistenceError, OSError):
            log.exception("could not discard unconfirmed slot=%s; reload before the next write", slot)

    def _confirm(self, slot: int, row: CdrRow) -> None:
        try:
            stored = self._dictionary.read_back(slot)
        except Exception as e:
            self._discard_unconfirmed(slot)
            raise PersistenceError(
                f"read-back of slot {slot} failed: {e}",
                details={"slot": slot, "long_name": row.long_name},
            ) from e
        if stored != row:
            self._discard_unconfirmed(slot)
            log.error(
                "insertion read-back mismatch slot=%s long_name=%s stored=%s",
                slot,
                row.long_name,
                stored.to_dict() if stored is not None else None,
            )
            raise PersistenceError(
                f"read-back of slot {slot} did not match the written row {row.long_name}",
                details={"slot": slot, "long_name": row.long_name},
            )

    def insert(self, request: InsertionRequest, *, session_id: Optional[str] = None) -> CdrRow:
        """
        Append one approved row as a single transaction.

        Uniqueness is re-checked, the slot reserved, written and read back
        inside the dictionary's write lock. A write that fails or reads back
        differently is discarded and surfaces as PersistenceError; only a
        confirmed row becomes visible to resolvers. Once published the row
        stays committed even if the audit record cannot be written.
        """
        row = request.to_row()

        with self._dictionary.write_lock():
            try:
                self._dictionary.ensure_unique(row)
            except DuplicateError:
                inc_insertion("duplicate")
                raise

            slot = self._dictionary.next_available_slot()
            try:
                self._dictionary.write_to_store(slot, row)
                self._confirm(slot, row)
            except PersistenceError:
                inc_insertion("persistence_failed")
                raise

            self._dictionary.publish(slot, row)

        inc_insertion("committed")
        log.info(
            "insertion committed slot=%s long_name=%s uid=%s approver=%s",
            slot,
            row.long_name,
            row.uid,
            request.approver,
        )
        try:
            audit_event(
                "row_inserted",
                actor=request.approver,
                session_id=session_id,
                extra={"slot": slot, "uid": row.uid, "long_name": row.long_name, "data_type": row.data_type},
                audit_path=self._audit_path,
            )
        except OSError:
            inc_insertion("audit_failed")
            log.exception("audit record for committed row uid=%s could not be written", row.uid)
        return row
