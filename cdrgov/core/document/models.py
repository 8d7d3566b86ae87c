from __future__ import annotations

import re
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from cdrgov.core.dictionary.models import CdrRow


TypeRole = Literal["request", "response", "error", "paginated", "entity"]
EndpointIntent = Literal["read", "list", "create", "replace", "update", "delete", "action"]

# Roles whose fields must be canonical and nested Concept -> Context.
CANONICAL_ROLES = ("request", "response", "entity")


def lower_camel(label: str) -> str:
    """``"Payment Method"`` -> ``"paymentMethod"``; ``"Customer"`` -> ``"customer"``."""
    words = [w for w in re.split(r"[^A-Za-z0-9]+", label or "") if w]
    if not words:
        return ""
    first, rest = words[0], words[1:]
    return first[:1].lower() + first[1:] + "".join(w[:1].upper() + w[1:] for w in rest)


class FieldRef(BaseModel):
    uid: str
    concept: str
    context: str
    data_requirement: str
    long_name: str
    data_type: str
    definition: str = ""

    @classmethod
    def from_row(cls, row: CdrRow) -> "FieldRef":
        return cls(
            uid=row.uid,
            concept=row.concept,
            context=row.context,
            data_requirement=row.data_requirement,
            long_name=row.long_name,
            data_type=row.data_type,
            definition=row.definition,
        )


class DocumentField(BaseModel):
    name: str
    required: bool = False
    data_type: str = "string"
    description: str = ""
    path: List[str] = Field(default_factory=list)
    ref: Optional[FieldRef] = None

    @property
    def location(self) -> str:
        return ".".join([*self.path, self.name])


class TypeDefinition(BaseModel):
    name: str
    role: TypeRole = "entity"
    fields: List[DocumentField] = Field(default_factory=list)


class CachingPolicy(BaseModel):
    cache_control: str
    etag: bool = False


class Endpoint(BaseModel):
    method: str
    path: str
    intent: EndpointIntent
    description: str = ""
    status_codes: List[int] = Field(default_factory=list)
    security: List[str] = Field(default_factory=list)
    caching: Optional[CachingPolicy] = None
    pagination: bool = False
    headers: List[str] = Field(default_factory=list)
    request_type: Optional[str] = None
    response_type: Optional[str] = None
    error_type: Optional[str] = None

    @property
    def label(self) -> str:
        return f"{self.method.upper()} {self.path}"


class DocumentHeader(BaseModel):
    title: str = ""
    base_uri: str = ""
    version: str = ""
    media_type: str = "application/json"
    security_schemes: List[str] = Field(default_factory=list)


class DocumentModel(DocumentHeader):
    types: List[TypeDefinition] = Field(default_factory=list)
    endpoints: List[Endpoint] = Field(default_factory=list)

    def type_named(self, name: Optional[str]) -> Optional[TypeDefinition]:
        if not name:
            return None
        for t in self.types:
            if t.name == name:
                return t
        return None


class FieldRequest(BaseModel):
    concept: str = Field(..., min_length=1)
    context: str = Field(..., min_length=1)
    field_name: str = Field(..., min_length=1)
    required: bool = False


class TypeSkeleton(BaseModel):
    name: str
    role: TypeRole = "entity"
    fields: List[FieldRequest] = Field(default_factory=list)
    # pass-through fields for error/paginated envelopes
    envelope: List[DocumentField] = Field(default_factory=list)


class DocumentSkeleton(DocumentHeader):
    types: List[TypeSkeleton] = Field(default_factory=list)
    endpoints: List[Endpoint] = Field(default_factory=list)


def field_from_row(row: CdrRow, *, required: bool) -> DocumentField:
    return DocumentField(
        name=row.data_requirement,
        required=required,
        data_type=row.data_type,
        description=row.definition,
        path=[lower_camel(row.concept), lower_camel(row.context)],
        ref=FieldRef.from_row(row),
    )
