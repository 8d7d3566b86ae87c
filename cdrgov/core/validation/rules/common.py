from __future__ import annotations

import re
from typing import Iterator, List, Tuple

from cdrgov.core.document.models import DocumentField, DocumentModel, TypeDefinition

FIELD_CAMEL_RE = re.compile(r"^[a-z][a-zA-Z0-9]*$")
CAPS_RUN_RE = re.compile(r"[A-Z]{2,}")
PAGINATED_RE = re.compile(r"^Paginated[A-Z][A-Za-z0-9]*Result$")
VERSION_SEGMENT_RE = re.compile(r"^v\d+$")


def is_camel(name: str) -> bool:
    return bool(FIELD_CAMEL_RE.match(name or "")) and not CAPS_RUN_RE.search(name or "")


def iter_fields(doc: DocumentModel) -> Iterator[Tuple[TypeDefinition, DocumentField]]:
    for t in doc.types:
        for f in t.fields:
            yield t, f


def field_location(t: TypeDefinition, f: DocumentField) -> str:
    return f"{t.name}.{f.location}"


def path_segments(path: str) -> List[str]:
    return [s for s in (path or "").split("/") if s]


def is_param(segment: str) -> bool:
    return segment.startswith("{") and segment.endswith("}")


def has_path_params(path: str) -> bool:
    return any(is_param(s) for s in path_segments(path))
