from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from cdrgov.core.document.models import DocumentModel

from .models import Severity, Violation

# A checker yields (location, message) or (location, message, details) per finding.
Finding = Tuple[Any, ...]
CheckFn = Callable[[DocumentModel], Iterable[Finding]]


@dataclass(frozen=True)
class RuleChecker:
    rule_id: str
    family: str
    severity: Severity
    summary: str
    fn: CheckFn

    def check(self, doc: DocumentModel) -> List[Violation]:
        out: List[Violation] = []
        for finding in self.fn(doc) or ():
            location, message = finding[0], finding[1]
            details: Optional[Dict[str, Any]] = finding[2] if len(finding) > 2 else None
            out.append(
                Violation(
                    rule_id=self.rule_id,
                    severity=self.severity,
                    message=message,
                    location=str(location),
                    details=details,
                )
            )
        return out


def rule(
    registry: List[RuleChecker],
    rule_id: str,
    summary: str,
    *,
    family: str,
    severity: Severity = Severity.ERROR,
) -> Callable[[CheckFn], CheckFn]:
    """Register the decorated function as a named checker in ``registry``."""

    def deco(fn: CheckFn) -> CheckFn:
        if any(r.rule_id == rule_id for r in registry):
            raise ValueError(f"Duplicate rule id: {rule_id}")
        registry.append(RuleChecker(rule_id=rule_id, family=family, severity=severity, summary=summary, fn=fn))
        return fn

    return deco
