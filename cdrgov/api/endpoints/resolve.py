from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter

from cdrgov.api.schemas import ResolveRequest
from cdrgov.api.state import get_shared_dictionary
from cdrgov.core.resolution import FieldResolver

router = APIRouter(tags=["resolution"])


@router.post("/resolve")
def resolve_field(req: ResolveRequest) -> Dict[str, Any]:
    resolver = FieldResolver(get_shared_dictionary())
    result = resolver.resolve(req.concept, req.context, req.field_name)
    return {"request": req.model_dump(), "result": result.to_dict()}
