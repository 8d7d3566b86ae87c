from .models import (
    CachingPolicy,
    DocumentField,
    DocumentModel,
    DocumentSkeleton,
    Endpoint,
    FieldRef,
    FieldRequest,
    TypeDefinition,
    TypeSkeleton,
    field_from_row,
    lower_camel,
)

__all__ = [
    "CachingPolicy",
    "DocumentField",
    "DocumentModel",
    "DocumentSkeleton",
    "Endpoint",
    "FieldRef",
    "FieldRequest",
    "TypeDefinition",
    "TypeSkeleton",
    "field_from_row",
    "lower_camel",
]
