from __future__ import annotations

from typing import List

from cdrgov.core.dictionary.models import derive_long_name
from cdrgov.core.document.models import CANONICAL_ROLES, DocumentModel, lower_camel

from ..registry import RuleChecker, rule
from .common import field_location, iter_fields

NESTING_RULES: List[RuleChecker] = []


def _canonical_fields(doc: DocumentModel):
    for t, f in iter_fields(doc):
        if t.role in CANONICAL_ROLES:
            yield t, f


@rule(NESTING_RULES, "NST-001", "No flat root fields", family="nesting")
def no_flat_root_fields(doc: DocumentModel):
    for t, f in _canonical_fields(doc):
        if not f.path:
            yield field_location(t, f), f"Field '{f.name}' sits at the root of '{t.name}'; nest it under its Concept and Context."


@rule(NESTING_RULES, "NST-002", "Fields nest exactly Concept -> Context", family="nesting")
def nesting_depth(doc: DocumentModel):
    for t, f in _canonical_fields(doc):
        if f.path and len(f.path) != 2:
            yield (
                field_location(t, f),
                f"Field '{f.name}' is nested {len(f.path)} level(s) deep; expected Concept -> Context.",
                {"path": list(f.path)},
            )


@rule(NESTING_RULES, "NST-003", "Root node is the field's Concept", family="nesting")
def root_is_concept(doc: DocumentModel):
    for t, f in _canonical_fields(doc):
        if not f.path or f.ref is None:
            continue
        expected = lower_camel(f.ref.concept)
        if f.path[0] != expected:
            yield field_location(t, f), f"Root node '{f.path[0]}' should be the Concept '{expected}'."


@rule(NESTING_RULES, "NST-004", "Second node is the field's Context", family="nesting")
def child_is_context(doc: DocumentModel):
    for t, f in _canonical_fields(doc):
        if len(f.path) < 2 or f.ref is None:
            continue
        expected = lower_camel(f.ref.context)
        if f.path[1] != expected:
            yield field_location(t, f), f"Node '{f.path[1]}' should be the Context '{expected}'."


@rule(NESTING_RULES, "NST-005", "Field name equals its Data Requirement", family="nesting")
def name_is_data_requirement(doc: DocumentModel):
    for t, f in _canonical_fields(doc):
        if f.ref is not None and f.name != f.ref.data_requirement:
            yield field_location(t, f), f"Field '{f.name}' does not match its canonical name '{f.ref.data_requirement}'."


@rule(NESTING_RULES, "NST-006", "Fields carry a canonical reference", family="nesting")
def canonical_reference(doc: DocumentModel):
    for t, f in _canonical_fields(doc):
        if f.ref is None:
            yield field_location(t, f), f"Field '{f.name}' has no canonical dictionary reference."


@rule(NESTING_RULES, "NST-007", "Reference long names are derived", family="nesting")
def reference_long_name(doc: DocumentModel):
    for t, f in iter_fields(doc):
        if f.ref is None:
            continue
        derived = derive_long_name(f.ref.concept, f.ref.context, f.ref.data_requirement)
        if f.ref.long_name != derived:
            yield field_location(t, f), f"Reference long name '{f.ref.long_name}' should be '{derived}'."


@rule(NESTING_RULES, "NST-008", "Types declare at least one field", family="nesting")
def non_empty_types(doc: DocumentModel):
    for t in doc.types:
        if not t.fields:
            yield t.name, f"Type '{t.name}' declares no fields."
