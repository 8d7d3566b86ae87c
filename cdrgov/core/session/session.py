"""
One request's lifecycle through resolution, approval and structural validation.

The session never blocks: a field that does not resolve exactly suspends it in
AWAITING_APPROVAL and control returns to the caller, which later feeds a
decision back through ``decide``. Any driver (HTTP, CLI, batch job) can own
that loop.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from typing import Any, Callable, Dict, List, Optional

from cdrgov.core import config
from cdrgov.core.dictionary.dictionary import CanonicalDictionary
from cdrgov.core.dictionary.models import CdrRow
from cdrgov.core.document.models import (
    DocumentModel,
    DocumentSkeleton,
    TypeDefinition,
    field_from_row,
)
from cdrgov.core.errors import (
    IllegalTransitionError,
    InvalidDecisionError,
    PersistenceError,
    SessionExpiredError,
    UnresolvedFieldError,
    ValidationFailure,
)
from cdrgov.core.insertion.coordinator import InsertionCoordinator, InsertionRequest
from cdrgov.core.observability.metrics import inc_session_finished
from cdrgov.core.resolution.models import Exact
from cdrgov.core.resolution.resolver import FieldResolver
from cdrgov.core.validation import DEFAULT_VALIDATOR, StructuralValidator, Violation

from .models import (
    Abort,
    ApproveInsertion,
    Decision,
    FieldSlot,
    PendingDecision,
    SelectExisting,
    SessionState,
)
from .state_machine import allowed_next, ensure_transition, is_terminal

log = logging.getLogger("cdrgov.session")


class GovernanceSession:
    def __init__(
        self,
        dictionary: CanonicalDictionary,
        *,
        resolver: Optional[FieldResolver] = None,
        coordinator: Optional[InsertionCoordinator] = None,
        validator: Optional[StructuralValidator] = None,
        session_id: Optional[str] = None,
        approval_ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self._dictionary = dictionary
        self._resolver = resolver or FieldResolver(dictionary)
        self._coordinator = coordinator or InsertionCoordinator(dictionary)
        self._validator = validator or DEFAULT_VALIDATOR
        self.approval_ttl_seconds = (
            float(approval_ttl_seconds) if approval_ttl_seconds is not None else config.approval_ttl_seconds()
        )
        self._clock = clock
        self._lock = threading.RLock()

        self.state = SessionState.COLLECTING
        self.created_ts = clock()
        self.updated_ts = self.created_ts
        self.terminal_reason: Optional[str] = None
        self.history: List[Dict[str, Any]] = []

        self._skeleton: Optional[DocumentSkeleton] = None
        self._slots: List[FieldSlot] = []
        self.pending: Optional[PendingDecision] = None
        self.violations: List[Violation] = []
        self._document: Optional[DocumentModel] = None

    # --- collecting ---

    def collect(self, skeleton: DocumentSkeleton) -> None:
        with self._lock:
            if self.state != SessionState.COLLECTING:
                raise IllegalTransitionError(
                    f"Cannot collect fields in state {self.state.value}",
                    details={"state": self.state.value},
                )
            self._skeleton = skeleton
            self._slots = [FieldSlot(type_name=t.name, request=r) for t in skeleton.types for r in t.fields]

    # --- driving ---

    def run(self) -> SessionState:
        """Advance as far as possible without a human decision."""
        with self._lock:
            if is_terminal(self.state):
                return self.state
            if self.state == SessionState.COLLECTING:
                if self._skeleton is None:
                    raise IllegalTransitionError("Nothing collected; call collect() first")
                self._transition(SessionState.RESOLVING)
            if self.state == SessionState.AWAITING_APPROVAL:
                if self._is_stale():
                    self._expire()
                return self.state
            if self.state == SessionState.RESOLVING:
                self._resolve_pending_fields()
            if self.state == SessionState.VALIDATING:
                self._validate()
            return self.state

    def decide(self, decision: Decision) -> SessionState:
        with self._lock:
            if self.state != SessionState.AWAITING_APPROVAL or self.pending is None:
                raise IllegalTransitionError(
                    f"No decision is pending in state {self.state.value}",
                    details={"state": self.state.value},
                )
            if self._is_stale():
                self._expire()
                raise SessionExpiredError(
                    f"Session {self.session_id} waited longer than {self.approval_ttl_seconds:.0f}s for a decision",
                    details={"session_id": self.session_id},
                )

            if isinstance(decision, Abort):
                return self.cancel(reason=decision.reason)

            pending = self.pending
            if isinstance(decision, SelectExisting):
                row = self._select_existing(pending, decision)
            elif isinstance(decision, ApproveInsertion):
                # errors propagate; the field stays unresolved and the session keeps waiting
                row = self._approve_insertion(pending, decision)
            else:
                raise InvalidDecisionError(f"Unsupported decision: {type(decision).__name__}")

            self._slots[pending.slot_index].row = row
            self.pending = None
            self._transition(SessionState.RESOLVING, requested=pending.request.field_name, resolved=row.long_name)
            return self.run()

    def cancel(self, reason: str = "canceled") -> SessionState:
        """Discard all session-local state. The dictionary is never touched."""
        with self._lock:
            if is_terminal(self.state):
                return self.state
            self._discard()
            self._finish(SessionState.CANCELED, reason)
            return self.state

    def expire_if_stale(self) -> bool:
        with self._lock:
            if self._is_stale():
                self._expire()
                return True
            return False

    def idle_seconds(self) -> float:
        """Seconds since the last state change."""
        with self._lock:
            return self._clock() - self.updated_ts

    # --- results ---

    def document(self) -> DocumentModel:
        with self._lock:
            if self.state == SessionState.READY and self._document is not None:
                return self._document
            if self.state == SessionState.REJECTED:
                if self.terminal_reason == "unresolved_field":
                    raise UnresolvedFieldError(f"Session {self.session_id} ended with unresolved fields")
                raise ValidationFailure(self.violations)
            raise IllegalTransitionError(
                f"No document in state {self.state.value}",
                details={"state": self.state.value},
            )

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "session_id": self.session_id,
                "state": self.state.value,
                "terminal_reason": self.terminal_reason,
                "created_ts": self.created_ts,
                "updated_ts": self.updated_ts,
                "allowed_next": allowed_next(self.state),
                "stale": self._is_stale(),
                "pending": self.pending.to_dict() if self.pending else None,
                "fields": [
                    {
                        "type_name": s.type_name,
                        "requested": s.request.field_name,
                        "resolved": s.row.data_requirement if s.row else None,
                        "long_name": s.row.long_name if s.row else None,
                        "uid": s.row.uid if s.row else None,
                    }
                    for s in self._slots
                ],
                "violations": [v.to_dict() for v in self.violations],
                "history": list(self.history),
            }

    # --- internals ---

    def _transition(self, dst: SessionState, **data: Any) -> None:
        ensure_transition(self.state, dst)
        self.state = dst
        self.updated_ts = self._clock()
        self.history.append({"ts": self.updated_ts, "state": dst.value, **data})
        log.info("session %s -> %s %s", self.session_id, dst.value, data or "")

    def _finish(self, dst: SessionState, reason: Optional[str] = None) -> None:
        self._transition(dst, reason=reason)
        self.terminal_reason = reason
        inc_session_finished(dst.value)

    def _discard(self) -> None:
        self._skeleton = None
        self._slots = []
        self.pending = None
        self._document = None

    def _is_stale(self) -> bool:
        if self.state != SessionState.AWAITING_APPROVAL or self.pending is None:
            return False
        return (self._clock() - self.pending.since_ts) > self.approval_ttl_seconds

    def _expire(self) -> None:
        self._discard()
        self._finish(SessionState.EXPIRED, "approval_timeout")

    def _resolve_pending_fields(self) -> None:
        for i, slot in enumerate(self._slots):
            if slot.resolved:
                continue
            req = slot.request
            result = self._resolver.resolve(req.concept, req.context, req.field_name)
            if isinstance(result, Exact):
                slot.row = result.row
                continue
            self.pending = PendingDecision(
                slot_index=i,
                type_name=slot.type_name,
                request=req,
                result=result,
                since_ts=self._clock(),
            )
            self._transition(SessionState.AWAITING_APPROVAL, field=req.field_name, outcome=result.kind)
            return
        self._transition(SessionState.VALIDATING)

    def _select_existing(self, pending: PendingDecision, decision: SelectExisting) -> CdrRow:
        req = pending.request
        row = self._dictionary.get_by_uid(decision.uid)
        if row is None:
            raise InvalidDecisionError(f"No canonical row with uid {decision.uid}", details={"uid": decision.uid})
        if (row.concept, row.context) != (req.concept, req.context):
            raise InvalidDecisionError(
                f"{row.long_name} is not under {req.concept}:{req.context}",
                details={"uid": decision.uid, "concept": req.concept, "context": req.context},
            )
        return row

    def _approve_insertion(self, pending: PendingDecision, decision: ApproveInsertion) -> CdrRow:
        req = pending.request
        row = self._coordinator.insert(
            InsertionRequest(
                concept=req.concept,
                context=req.context,
                field_name=decision.field_name or req.field_name,
                definition=decision.definition,
                data_type=decision.data_type,
                uid=decision.uid,
                long_name=decision.long_name,
                approver=decision.approver,
            ),
            session_id=self.session_id,
        )
        confirm = self._resolver.resolve(row.concept, row.context, row.data_requirement)
        if not (isinstance(confirm, Exact) and confirm.row == row):
            raise PersistenceError(
                f"{row.long_name} was committed but does not resolve exactly",
                details={"uid": row.uid},
            )
        return row

    def _assemble(self) -> DocumentModel:
        skeleton = self._skeleton
        if skeleton is None:
            raise IllegalTransitionError("Session has no skeleton to assemble")
        types: List[TypeDefinition] = []
        for t in skeleton.types:
            fields = [field_from_row(s.row, required=s.request.required) for s in self._slots if s.type_name == t.name and s.row]
            types.append(TypeDefinition(name=t.name, role=t.role, fields=fields + list(t.envelope)))
        return DocumentModel(
            title=skeleton.title,
            base_uri=skeleton.base_uri,
            version=skeleton.version,
            media_type=skeleton.media_type,
            security_schemes=list(skeleton.security_schemes),
            types=types,
            endpoints=list(skeleton.endpoints),
        )

    def _validate(self) -> None:
        unresolved = [s.request.field_name for s in self._slots if not s.resolved]
        if unresolved:
            self._discard()
            self._finish(SessionState.REJECTED, "unresolved_field")
            raise UnresolvedFieldError(
                f"Session {self.session_id} reached validation with unresolved fields: {unresolved}",
                details={"fields": unresolved},
            )

        doc = self._assemble()
        self.violations = self._validator.validate(doc)
        if self._validator.is_blocking(self.violations):
            self._document = None
            self._finish(SessionState.REJECTED, "validation_failed")
            log.info("session %s rejected violations=%s", self.session_id, len(self.violations))
        else:
            self._document = doc
            self._finish(SessionState.READY)
