from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from cdrgov.core import config
from cdrgov.core.document.models import DocumentModel
from cdrgov.core.observability.metrics import inc_violation

from .models import Severity, Violation
from .registry import RuleChecker

log = logging.getLogger("cdrgov.validation")

ENGINE_FAILURE_RULE = "ENG-001"


class StructuralValidator:
    """
    Runs every registered checker over the whole document.

    Validation is total: checkers are independent and a checker that raises
    is reported as an ENG-001 violation instead of stopping the run.
    """

    def __init__(self, checkers: Iterable[RuleChecker]):
        self._checkers: List[RuleChecker] = list(checkers)
        ids = [c.rule_id for c in self._checkers]
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        if dupes:
            raise ValueError(f"Duplicate rule ids: {dupes}")

    @property
    def checkers(self) -> List[RuleChecker]:
        return list(self._checkers)

    def rule_ids(self) -> List[str]:
        return [c.rule_id for c in self._checkers]

    def validate(self, doc: DocumentModel) -> List[Violation]:
        violations: List[Violation] = []
        for checker in self._checkers:
            try:
                found = checker.check(doc)
            except Exception as e:
                log.warning("checker %s failed: %s", checker.rule_id, e)
                found = [
                    Violation(
                        rule_id=ENGINE_FAILURE_RULE,
                        severity=Severity.ERROR,
                        message=f"Rule {checker.rule_id} could not be evaluated: {e}",
                        location="document",
                        details={"rule": checker.rule_id},
                    )
                ]
            violations.extend(found)

        for v in violations:
            inc_violation(v.rule_id, v.severity.value)
        log.debug("validate title=%s violations=%s", doc.title, len(violations))
        return violations

    @staticmethod
    def is_blocking(violations: List[Violation], *, warnings_block: Optional[bool] = None) -> bool:
        if warnings_block is None:
            warnings_block = config.warnings_block()
        if warnings_block:
            return bool(violations)
        return any(v.severity == Severity.ERROR for v in violations)
