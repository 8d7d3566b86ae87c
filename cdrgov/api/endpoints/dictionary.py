from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException

from cdrgov.api.state import get_shared_dictionary

router = APIRouter(prefix="/dictionary", tags=["dictionary"])


@router.get("/rows")
def list_rows(concept: Optional[str] = None, context: Optional[str] = None) -> Dict[str, Any]:
    d = get_shared_dictionary()
    if concept and context:
        rows = d.filter(concept, context)
    else:
        rows = [
            r
            for r in d.rows()
            if (not concept or r.concept == concept) and (not context or r.context == context)
        ]
    return {"count": len(rows), "rows": [r.to_dict() for r in rows]}


@router.get("/rows/{uid}")
def get_row(uid: str) -> Dict[str, Any]:
    row = get_shared_dictionary().get_by_uid(uid)
    if row is None:
        raise HTTPException(status_code=404, detail="row_not_found")
    return row.to_dict()


@router.get("/concepts")
def list_concepts() -> Dict[str, Any]:
    return {"concepts": get_shared_dictionary().concepts()}
