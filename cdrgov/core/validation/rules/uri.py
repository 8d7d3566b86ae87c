from __future__ import annotations

import re
from typing import List
from urllib.parse import urlparse

from cdrgov.core.document.models import DocumentModel

from ..registry import RuleChecker, rule
from .common import VERSION_SEGMENT_RE, is_param, path_segments

URI_RULES: List[RuleChecker] = []

KEBAB_RE = re.compile(r"^[a-z][a-z0-9]*(?:-[a-z0-9]+)*$")
PARAM_RE = re.compile(r"^\{[a-z][a-zA-Z0-9]*\}$")

IRREGULAR_PLURALS = {"people", "children", "data", "media", "metadata", "criteria", "feedback", "information"}
CRUD_VERBS = {"get", "list", "fetch", "create", "add", "insert", "update", "modify", "delete", "remove"}


def _static(path: str) -> List[str]:
    return [s for s in path_segments(path) if not is_param(s)]


def is_plural(segment: str) -> bool:
    word = segment.split("-")[-1]
    return word in IRREGULAR_PLURALS or word.endswith("s")


def _base_version(base_uri: str) -> str:
    segs = path_segments(urlparse(base_uri or "").path)
    return segs[-1] if segs and VERSION_SEGMENT_RE.match(segs[-1]) else ""


@rule(URI_RULES, "URI-001", "Paths start with / and have no trailing slash", family="uri")
def path_slashes(doc: DocumentModel):
    for ep in doc.endpoints:
        if not ep.path.startswith("/"):
            yield ep.label, "Path must start with '/'."
        elif len(ep.path) > 1 and ep.path.endswith("/"):
            yield ep.label, "Path must not end with '/'."


@rule(URI_RULES, "URI-002", "Path segments are lowercase kebab-case", family="uri")
def kebab_segments(doc: DocumentModel):
    for ep in doc.endpoints:
        for seg in _static(ep.path):
            if not KEBAB_RE.match(seg):
                yield ep.label, f"Segment '{seg}' is not lowercase kebab-case."


@rule(URI_RULES, "URI-003", "Path parameters are {lowerCamel}", family="uri")
def param_names(doc: DocumentModel):
    for ep in doc.endpoints:
        for seg in path_segments(ep.path):
            if is_param(seg) and not PARAM_RE.match(seg):
                yield ep.label, f"Path parameter '{seg}' must be {{lowerCamelCase}}."


@rule(URI_RULES, "URI-004", "Collection segments are plural nouns", family="uri")
def plural_collections(doc: DocumentModel):
    for ep in doc.endpoints:
        segs = _static(ep.path)
        if ep.intent == "action" and segs:
            segs = segs[:-1]
        for seg in segs:
            if VERSION_SEGMENT_RE.match(seg):
                continue
            if not is_plural(seg):
                yield ep.label, f"Resource segment '{seg}' should be a plural noun."


@rule(URI_RULES, "URI-005", "Paths contain no CRUD verbs", family="uri")
def no_crud_verbs(doc: DocumentModel):
    for ep in doc.endpoints:
        for seg in _static(ep.path):
            if seg.split("-")[0] in CRUD_VERBS:
                yield ep.label, f"Segment '{seg}' names an operation; let the HTTP method carry it."


@rule(URI_RULES, "URI-006", "Paths carry no file extensions", family="uri")
def no_extensions(doc: DocumentModel):
    for ep in doc.endpoints:
        for seg in _static(ep.path):
            if "." in seg:
                yield ep.label, f"Segment '{seg}' carries a file extension."


@rule(URI_RULES, "URI-007", "Paths carry no query string", family="uri")
def no_query_string(doc: DocumentModel):
    for ep in doc.endpoints:
        if "?" in ep.path:
            yield ep.label, "Query parameters belong in the endpoint definition, not the path."


@rule(URI_RULES, "VER-001", "The base URI ends with a major version", family="versioning")
def versioned_base_uri(doc: DocumentModel):
    if not _base_version(doc.base_uri):
        yield "baseUri", f"Base URI '{doc.base_uri}' must end with a major version segment such as /v1."


@rule(URI_RULES, "VER-002", "Endpoint paths carry no version", family="versioning")
def unversioned_paths(doc: DocumentModel):
    for ep in doc.endpoints:
        if any(VERSION_SEGMENT_RE.match(s) for s in _static(ep.path)):
            yield ep.label, "The version belongs in the base URI, not the endpoint path."


@rule(URI_RULES, "VER-003", "The document version matches the base URI", family="versioning")
def version_matches_base_uri(doc: DocumentModel):
    base = _base_version(doc.base_uri)
    if base and doc.version != base:
        yield "version", f"Document version '{doc.version}' does not match base URI version '{base}'."


@rule(URI_RULES, "VER-004", "The base URI uses https", family="versioning")
def https_base_uri(doc: DocumentModel):
    if urlparse(doc.base_uri or "").scheme != "https":
        yield "baseUri", f"Base URI '{doc.base_uri}' must use https."
