from __future__ import annotations

from typing import List

from cdrgov.core.document.models import DocumentModel

from ..models import Severity
from ..registry import RuleChecker, rule
from .common import PAGINATED_RE

CROSSCUTTING_RULES: List[RuleChecker] = []

CORRELATION_HEADER = "X-Correlation-Id"
MEDIA_TYPE = "application/json"


def _is_collection_read(method: str, intent: str) -> bool:
    return method.upper() == "GET" and intent == "list"


@rule(CROSSCUTTING_RULES, "CCH-001", "GET endpoints declare Cache-Control", family="caching")
def get_declares_caching(doc: DocumentModel):
    for ep in doc.endpoints:
        if ep.method.upper() == "GET" and (ep.caching is None or not ep.caching.cache_control.strip()):
            yield ep.label, "GET endpoint must declare a Cache-Control policy."


@rule(CROSSCUTTING_RULES, "CCH-002", "Non-GET endpoints are not cacheable", family="caching")
def unsafe_methods_not_cached(doc: DocumentModel):
    for ep in doc.endpoints:
        if ep.method.upper() == "GET" or ep.caching is None:
            continue
        if "no-store" not in ep.caching.cache_control.lower():
            yield ep.label, f"{ep.method.upper()} responses must not be cacheable (use 'no-store')."


@rule(CROSSCUTTING_RULES, "PAG-001", "Collection reads are paginated", family="pagination")
def collections_paginated(doc: DocumentModel):
    for ep in doc.endpoints:
        if _is_collection_read(ep.method, ep.intent) and not ep.pagination:
            yield ep.label, "Collection endpoint must apply the pagination trait."


@rule(CROSSCUTTING_RULES, "PAG-002", "Only collection reads are paginated", family="pagination")
def pagination_only_on_collections(doc: DocumentModel):
    for ep in doc.endpoints:
        if ep.pagination and not _is_collection_read(ep.method, ep.intent):
            yield ep.label, "Pagination trait applied to an endpoint that is not a collection read."


@rule(CROSSCUTTING_RULES, "PAG-003", "Paginated endpoints return Paginated{Entity}Result", family="pagination")
def paginated_response_type(doc: DocumentModel):
    for ep in doc.endpoints:
        if ep.pagination and not PAGINATED_RE.match(ep.response_type or ""):
            yield ep.label, f"Paginated endpoint returns '{ep.response_type}', expected 'Paginated{{Entity}}Result'."


@rule(CROSSCUTTING_RULES, "SEC-001", "The document declares a security scheme", family="security")
def security_scheme_declared(doc: DocumentModel):
    if not doc.security_schemes:
        yield "securitySchemes", "Document declares no security scheme."


@rule(CROSSCUTTING_RULES, "SEC-002", "Every endpoint is secured", family="security")
def endpoints_secured(doc: DocumentModel):
    for ep in doc.endpoints:
        if not ep.security:
            yield ep.label, "Endpoint is not secured by any scheme."


@rule(CROSSCUTTING_RULES, "SEC-003", "Endpoints use declared schemes", family="security")
def known_security_schemes(doc: DocumentModel):
    declared = set(doc.security_schemes)
    for ep in doc.endpoints:
        for scheme in ep.security:
            if scheme not in declared:
                yield ep.label, f"Security scheme '{scheme}' is not declared in the document."


@rule(
    CROSSCUTTING_RULES,
    "COR-001",
    "Endpoints accept X-Correlation-Id",
    family="tracing",
    severity=Severity.WARNING,
)
def correlation_id_header(doc: DocumentModel):
    for ep in doc.endpoints:
        if CORRELATION_HEADER.lower() not in {h.lower() for h in ep.headers}:
            yield ep.label, f"Endpoint must accept the {CORRELATION_HEADER} header."


@rule(CROSSCUTTING_RULES, "MED-001", "Media type is application/json", family="document")
def json_media_type(doc: DocumentModel):
    if doc.media_type != MEDIA_TYPE:
        yield "mediaType", f"Media type '{doc.media_type}' must be '{MEDIA_TYPE}'."


@rule(CROSSCUTTING_RULES, "DOC-001", "The document has a title", family="document")
def title_present(doc: DocumentModel):
    if not (doc.title or "").strip():
        yield "title", "Document has no title."


@rule(CROSSCUTTING_RULES, "DOC-002", "Endpoints are described", family="document", severity=Severity.WARNING)
def endpoint_descriptions(doc: DocumentModel):
    for ep in doc.endpoints:
        if not (ep.description or "").strip():
            yield ep.label, "Endpoint has no description."
