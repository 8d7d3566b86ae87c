"""Error taxonomy shared by the dictionary, resolver, coordinator and session."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence


class GovernanceError(Exception):
    """Base class for every error raised by the governance engine."""

    code = "governance_error"

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            out["details"] = dict(self.details)
        return out


class DuplicateError(GovernanceError):
    """An insert collides with an existing (concept, context, data requirement) or uid."""

    code = "duplicate"


class PersistenceError(GovernanceError):
    """A write to the backing store failed or did not read back as sent."""

    code = "persistence_failed"


class SlotConflictError(PersistenceError):
    """The reserved slot was no longer the next free slot at write time."""

    code = "slot_conflict"


class InvalidRowError(GovernanceError, ValueError):
    code = "invalid_row"


class InvalidDecisionError(GovernanceError):
    code = "invalid_decision"


class IllegalTransitionError(GovernanceError, ValueError):
    code = "illegal_transition"


class SessionExpiredError(GovernanceError):
    code = "session_expired"


class UnresolvedFieldError(GovernanceError):
    """A session reached validation with a field that is not canonical."""

    code = "unresolved_field"


class ValidationFailure(GovernanceError):
    """Carries the complete, untruncated list of structural violations."""

    code = "validation_failed"

    def __init__(self, violations: Sequence[Any], message: Optional[str] = None):
        self.violations: List[Any] = list(violations)
        super().__init__(message or f"{len(self.violations)} structural violation(s)")

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        out["violations"] = [v.to_dict() for v in self.violations]
        return out
