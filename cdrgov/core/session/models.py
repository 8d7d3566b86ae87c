from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from cdrgov.core.dictionary.models import CdrRow
from cdrgov.core.document.models import FieldRequest
from cdrgov.core.resolution.models import ResolutionResult


class SessionState(str, Enum):
    COLLECTING = "COLLECTING"
    RESOLVING = "RESOLVING"
    AWAITING_APPROVAL = "AWAITING_APPROVAL"
    VALIDATING = "VALIDATING"
    READY = "READY"
    REJECTED = "REJECTED"
    CANCELED = "CANCELED"
    EXPIRED = "EXPIRED"


@dataclass(frozen=True)
class SelectExisting:
    uid: str


@dataclass(frozen=True)
class ApproveInsertion:
    definition: str
    data_type: str
    uid: str
    field_name: Optional[str] = None  # defaults to the requested name
    long_name: Optional[str] = None
    approver: Optional[str] = None


@dataclass(frozen=True)
class Abort:
    reason: str = "aborted"


Decision = Union[SelectExisting, ApproveInsertion, Abort]


@dataclass
class FieldSlot:
    type_name: str
    request: FieldRequest
    row: Optional[CdrRow] = None

    @property
    def resolved(self) -> bool:
        return self.row is not None


@dataclass(frozen=True)
class PendingDecision:
    slot_index: int
    type_name: str
    request: FieldRequest
    result: ResolutionResult
    since_ts: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type_name": self.type_name,
            "request": self.request.model_dump(),
            "result": self.result.to_dict(),
            "since_ts": self.since_ts,
        }
