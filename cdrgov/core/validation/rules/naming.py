from __future__ import annotations

import re
from collections import Counter
from typing import List

from cdrgov.core.document.models import DocumentModel

from ..registry import RuleChecker, rule
from .common import PAGINATED_RE, field_location, is_camel, iter_fields

NAMING_RULES: List[RuleChecker] = []

TYPE_PASCAL_RE = re.compile(r"^[A-Z][a-z0-9]+(?:[A-Z][a-z0-9]+)*$")
ID_SUFFIX_RE = re.compile(r"[a-z0-9]Id$")
AT_SUFFIX_RE = re.compile(r"[a-z0-9]At$")
BOOL_PREFIX_RE = re.compile(r"^(is|has)[A-Z]")

RESERVED_SUFFIXES = ("Request", "Response", "Result")


@rule(NAMING_RULES, "NAM-001", "Field names are camelCase", family="naming")
def field_names_camel_case(doc: DocumentModel):
    for t, f in iter_fields(doc):
        if not is_camel(f.name):
            yield field_location(t, f), f"Field '{f.name}' is not camelCase."


@rule(NAMING_RULES, "NAM-002", "Type names are PascalCase", family="naming")
def type_names_pascal_case(doc: DocumentModel):
    for t in doc.types:
        if not TYPE_PASCAL_RE.match(t.name or ""):
            yield t.name or "<unnamed type>", f"Type '{t.name}' is not PascalCase."


@rule(NAMING_RULES, "NAM-003", "The Id suffix is reserved for string identifiers", family="naming")
def id_suffix_on_identifiers(doc: DocumentModel):
    for t, f in iter_fields(doc):
        if ID_SUFFIX_RE.search(f.name) and f.data_type != "string":
            yield field_location(t, f), f"Field '{f.name}' ends with 'Id' but is a {f.data_type}, not a string identifier."


@rule(NAMING_RULES, "NAM-004", "The At suffix is reserved for timestamps", family="naming")
def at_suffix_on_timestamps(doc: DocumentModel):
    for t, f in iter_fields(doc):
        if AT_SUFFIX_RE.search(f.name) and f.data_type != "datetime":
            yield field_location(t, f), f"Field '{f.name}' ends with 'At' but is a {f.data_type}, not a datetime."


@rule(NAMING_RULES, "NAM-005", "Request types end with Request", family="naming")
def request_suffix(doc: DocumentModel):
    for t in doc.types:
        if t.role == "request" and not t.name.endswith("Request"):
            yield t.name, f"Request type '{t.name}' must end with 'Request'."


@rule(NAMING_RULES, "NAM-006", "Response types end with Response", family="naming")
def response_suffix(doc: DocumentModel):
    for t in doc.types:
        if t.role != "response":
            continue
        if not t.name.endswith("Response") or t.name.endswith("ErrorResponse"):
            yield t.name, f"Response type '{t.name}' must end with 'Response' (and not 'ErrorResponse')."


@rule(NAMING_RULES, "NAM-007", "Error types end with ErrorResponse", family="naming")
def error_suffix(doc: DocumentModel):
    for t in doc.types:
        if t.role == "error" and not t.name.endswith("ErrorResponse"):
            yield t.name, f"Error type '{t.name}' must end with 'ErrorResponse'."


@rule(NAMING_RULES, "NAM-008", "Paginated types are named Paginated{Entity}Result", family="naming")
def paginated_name(doc: DocumentModel):
    for t in doc.types:
        if t.role == "paginated" and not PAGINATED_RE.match(t.name):
            yield t.name, f"Paginated type '{t.name}' must be named 'Paginated{{Entity}}Result'."


@rule(NAMING_RULES, "NAM-009", "Entity types do not use reserved suffixes", family="naming")
def entity_reserved_suffix(doc: DocumentModel):
    for t in doc.types:
        if t.role == "entity" and t.name.endswith(RESERVED_SUFFIXES):
            yield t.name, f"Entity type '{t.name}' uses a suffix reserved for request/response/result types."


@rule(NAMING_RULES, "NAM-010", "Type names are unique", family="naming")
def unique_type_names(doc: DocumentModel):
    counts = Counter(t.name for t in doc.types)
    for name, n in counts.items():
        if n > 1:
            yield name, f"Type '{name}' is declared {n} times."


@rule(NAMING_RULES, "NAM-011", "Field names are unique within their object", family="naming")
def unique_field_names(doc: DocumentModel):
    for t in doc.types:
        counts = Counter(f.location for f in t.fields)
        for loc, n in counts.items():
            if n > 1:
                yield f"{t.name}.{loc}", f"Field '{loc}' is declared {n} times in '{t.name}'."


@rule(NAMING_RULES, "NAM-012", "Object nodes are camelCase", family="naming")
def path_nodes_camel_case(doc: DocumentModel):
    seen = set()
    for t, f in iter_fields(doc):
        for node in f.path:
            key = (t.name, node)
            if key in seen:
                continue
            seen.add(key)
            if not is_camel(node):
                yield f"{t.name}.{node}", f"Object node '{node}' is not camelCase."


@rule(NAMING_RULES, "NAM-013", "is/has prefixes are reserved for booleans", family="naming")
def boolean_prefixes(doc: DocumentModel):
    for t, f in iter_fields(doc):
        if BOOL_PREFIX_RE.match(f.name) and f.data_type != "boolean":
            yield field_location(t, f), f"Field '{f.name}' reads as a boolean but is a {f.data_type}."
