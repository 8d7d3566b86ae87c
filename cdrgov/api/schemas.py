from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

from cdrgov.core.errors import InvalidDecisionError
from cdrgov.core.session import Abort, ApproveInsertion, Decision, SelectExisting


class ResolveRequest(BaseModel):
    concept: str = Field(..., min_length=1)
    context: str = Field(..., min_length=1)
    field_name: str = Field(..., min_length=1)


class DecisionRequest(BaseModel):
    action: Literal["select", "approve", "abort"]
    uid: Optional[str] = None
    definition: Optional[str] = None
    data_type: Optional[str] = None
    field_name: Optional[str] = None
    long_name: Optional[str] = None
    approver: Optional[str] = None
    reason: Optional[str] = None

    def to_decision(self) -> Decision:
        if self.action == "abort":
            return Abort(reason=self.reason or "aborted")
        if not self.uid:
            raise InvalidDecisionError(f"'{self.action}' requires a uid")
        if self.action == "select":
            return SelectExisting(uid=self.uid)
        missing = [k for k in ("definition", "data_type") if not getattr(self, k)]
        if missing:
            raise InvalidDecisionError(f"'approve' requires {', '.join(missing)}", details={"missing": missing})
        return ApproveInsertion(
            definition=self.definition or "",
            data_type=self.data_type or "",
            uid=self.uid,
            field_name=self.field_name,
            long_name=self.long_name,
            approver=self.approver,
        )
