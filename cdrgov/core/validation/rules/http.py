from __future__ import annotations

from collections import Counter
from typing import List, Set

from cdrgov.core.document.models import DocumentModel, Endpoint

from ..registry import RuleChecker, rule
from .common import has_path_params

HTTP_RULES: List[RuleChecker] = []

INTENTS_BY_METHOD = {
    "GET": {"read", "list"},
    "POST": {"create", "action"},
    "PUT": {"replace"},
    "PATCH": {"update"},
    "DELETE": {"delete"},
}
BODY_METHODS = {"POST", "PUT", "PATCH"}

RESPONSE_ROLES = {"response", "paginated"}


def _method(ep: Endpoint) -> str:
    return (ep.method or "").upper()


def expected_success_codes(ep: Endpoint) -> Set[int]:
    m = _method(ep)
    if m == "GET":
        return {200}
    if m == "POST":
        return {201} if ep.intent == "create" else {200, 202, 204}
    if m in ("PUT", "PATCH"):
        return {200, 204}
    if m == "DELETE":
        return {200} if ep.response_type else {204}
    return set()


@rule(HTTP_RULES, "HTTP-001", "Only GET, POST, PUT, PATCH and DELETE are used", family="http")
def allowed_methods(doc: DocumentModel):
    for ep in doc.endpoints:
        if _method(ep) not in INTENTS_BY_METHOD:
            yield ep.label, f"Method '{ep.method}' is not allowed."


@rule(HTTP_RULES, "HTTP-002", "Method matches the endpoint intent", family="http")
def method_intent_alignment(doc: DocumentModel):
    for ep in doc.endpoints:
        intents = INTENTS_BY_METHOD.get(_method(ep))
        if intents is not None and ep.intent not in intents:
            yield ep.label, f"{_method(ep)} is used for a '{ep.intent}' operation; expected one of {sorted(intents)}."


@rule(HTTP_RULES, "HTTP-003", "GET and DELETE take no request body", family="http")
def no_body_on_safe_methods(doc: DocumentModel):
    for ep in doc.endpoints:
        if _method(ep) in ("GET", "DELETE") and ep.request_type:
            yield ep.label, f"{_method(ep)} must not declare a request body ('{ep.request_type}')."


@rule(HTTP_RULES, "HTTP-004", "The method's success status code is declared", family="http")
def success_status_present(doc: DocumentModel):
    for ep in doc.endpoints:
        expected = expected_success_codes(ep)
        if expected and not expected & set(ep.status_codes):
            codes = " or ".join(str(c) for c in sorted(expected))
            yield (
                ep.label,
                f"{_method(ep)} {ep.intent} endpoint must declare {codes}.",
                {"expected": sorted(expected), "declared": sorted(ep.status_codes)},
            )


@rule(HTTP_RULES, "HTTP-005", "201 is only returned by POST", family="http")
def created_only_on_post(doc: DocumentModel):
    for ep in doc.endpoints:
        if 201 in ep.status_codes and _method(ep) != "POST":
            yield ep.label, f"{_method(ep)} must not return 201 Created."


@rule(HTTP_RULES, "HTTP-006", "Body-carrying methods declare 400", family="http")
def bad_request_on_body_methods(doc: DocumentModel):
    for ep in doc.endpoints:
        if _method(ep) in BODY_METHODS and 400 not in ep.status_codes:
            yield ep.label, f"{_method(ep)} accepts a body and must declare 400."


@rule(HTTP_RULES, "HTTP-007", "Secured endpoints declare 401", family="http")
def unauthorized_on_secured(doc: DocumentModel):
    for ep in doc.endpoints:
        if ep.security and 401 not in ep.status_codes:
            yield ep.label, "Secured endpoint must declare 401."


@rule(HTTP_RULES, "HTTP-008", "Parameterised paths declare 404", family="http")
def not_found_on_item_paths(doc: DocumentModel):
    for ep in doc.endpoints:
        if has_path_params(ep.path) and 404 not in ep.status_codes:
            yield ep.label, "Endpoint addresses a resource by path parameter and must declare 404."


@rule(HTTP_RULES, "HTTP-009", "Every endpoint declares 500", family="http")
def server_error_declared(doc: DocumentModel):
    for ep in doc.endpoints:
        if 500 not in ep.status_codes:
            yield ep.label, "Endpoint must declare 500."


@rule(HTTP_RULES, "HTTP-010", "Status codes are valid HTTP codes", family="http")
def valid_status_codes(doc: DocumentModel):
    for ep in doc.endpoints:
        bad = sorted(c for c in ep.status_codes if not 100 <= c <= 599)
        if bad:
            yield ep.label, f"Invalid status code(s): {bad}."


@rule(HTTP_RULES, "HTTP-011", "204 responses carry no body", family="http")
def no_content_has_no_body(doc: DocumentModel):
    for ep in doc.endpoints:
        codes = set(ep.status_codes)
        if 204 in codes and not codes & {200, 201} and ep.response_type:
            yield ep.label, f"Endpoint only returns 204 but declares response type '{ep.response_type}'."


@rule(HTTP_RULES, "HTTP-012", "200/201 responses declare a body type", family="http")
def success_has_body(doc: DocumentModel):
    for ep in doc.endpoints:
        if set(ep.status_codes) & {200, 201} and not ep.response_type:
            yield ep.label, "Endpoint returns 200/201 but declares no response type."


@rule(HTTP_RULES, "HTTP-013", "Body-carrying methods declare a request type", family="http")
def body_methods_have_request_type(doc: DocumentModel):
    for ep in doc.endpoints:
        if _method(ep) in BODY_METHODS and not ep.request_type:
            yield ep.label, f"{_method(ep)} must declare a request type."


@rule(HTTP_RULES, "HTTP-014", "Referenced types are declared", family="http")
def referenced_types_exist(doc: DocumentModel):
    for ep in doc.endpoints:
        for kind, name in (("request", ep.request_type), ("response", ep.response_type), ("error", ep.error_type)):
            if name and doc.type_named(name) is None:
                yield ep.label, f"{kind.capitalize()} type '{name}' is not declared in the document."


@rule(HTTP_RULES, "HTTP-015", "Referenced types have the matching role", family="http")
def referenced_type_roles(doc: DocumentModel):
    for ep in doc.endpoints:
        req = doc.type_named(ep.request_type)
        if req is not None and req.role != "request":
            yield ep.label, f"Request type '{req.name}' has role '{req.role}', expected 'request'."
        resp = doc.type_named(ep.response_type)
        if resp is not None and resp.role not in RESPONSE_ROLES:
            yield ep.label, f"Response type '{resp.name}' has role '{resp.role}', expected 'response' or 'paginated'."
        err = doc.type_named(ep.error_type)
        if err is not None and err.role != "error":
            yield ep.label, f"Error type '{err.name}' has role '{err.role}', expected 'error'."


@rule(HTTP_RULES, "HTTP-016", "Error status codes declare an error type", family="http")
def error_type_for_error_codes(doc: DocumentModel):
    for ep in doc.endpoints:
        if any(c >= 400 for c in ep.status_codes) and not ep.error_type:
            yield ep.label, "Endpoint declares 4xx/5xx responses but no ErrorResponse type."


@rule(HTTP_RULES, "HTTP-017", "Endpoints are unique by method and path", family="http")
def unique_endpoints(doc: DocumentModel):
    counts = Counter((_method(ep), ep.path) for ep in doc.endpoints)
    for (m, p), n in counts.items():
        if n > 1:
            yield f"{m} {p}", f"Endpoint {m} {p} is declared {n} times."
