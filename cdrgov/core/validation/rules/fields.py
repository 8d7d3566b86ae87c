from __future__ import annotations

from typing import List

from cdrgov.core.dictionary.models import DATA_TYPES
from cdrgov.core.document.models import DocumentModel

from ..registry import RuleChecker, rule
from .common import field_location, iter_fields

FIELD_RULES: List[RuleChecker] = []


@rule(FIELD_RULES, "TYP-001", "Data types come from the controlled vocabulary", family="typing")
def known_data_type(doc: DocumentModel):
    for t, f in iter_fields(doc):
        if f.data_type not in DATA_TYPES:
            yield field_location(t, f), f"Field '{f.name}' has unknown data type '{f.data_type}'."


@rule(FIELD_RULES, "TYP-002", "Data type matches the canonical row", family="typing")
def data_type_matches_reference(doc: DocumentModel):
    for t, f in iter_fields(doc):
        if f.ref is not None and f.data_type != f.ref.data_type:
            yield (
                field_location(t, f),
                f"Field '{f.name}' is a {f.data_type} but the dictionary defines a {f.ref.data_type}.",
                {"uid": f.ref.uid},
            )


@rule(FIELD_RULES, "TYP-003", "Descriptions are the canonical definition verbatim", family="typing")
def description_is_definition(doc: DocumentModel):
    for t, f in iter_fields(doc):
        if f.ref is not None and f.description != f.ref.definition:
            yield field_location(t, f), f"Description of '{f.name}' differs from the canonical definition.", {"uid": f.ref.uid}


@rule(FIELD_RULES, "TYP-004", "Every field is described", family="typing")
def description_present(doc: DocumentModel):
    for t, f in iter_fields(doc):
        if not (f.description or "").strip():
            yield field_location(t, f), f"Field '{f.name}' has no description."
