from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter

from cdrgov.core.document import DocumentModel
from cdrgov.core.validation import DEFAULT_VALIDATOR

router = APIRouter(tags=["validation"])


@router.post("/validate")
def validate_document(doc: DocumentModel) -> Dict[str, Any]:
    """Lint a document without touching the dictionary. Always 200; see ``blocking``."""
    violations = DEFAULT_VALIDATOR.validate(doc)
    return {
        "blocking": DEFAULT_VALIDATOR.is_blocking(violations),
        "count": len(violations),
        "violations": [v.to_dict() for v in violations],
    }


@router.get("/validate/rules")
def list_rules() -> Dict[str, Any]:
    return {
        "rules": [
            {"rule_id": c.rule_id, "family": c.family, "severity": c.severity.value, "summary": c.summary}
            for c in DEFAULT_VALIDATOR.checkers
        ]
    }
