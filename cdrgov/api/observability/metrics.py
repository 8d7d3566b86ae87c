from __future__ import annotations

import re
from typing import Optional

from prometheus_client import Counter, Histogram

_SESSION_PATH = re.compile(r"^/api/v1/sessions/(?!sweep$)([^/]+)")
_ROW_PATH = re.compile(r"^(/api/v1/dictionary/rows)/[^/]+$")


def session_id_from_path(path: str) -> Optional[str]:
    m = _SESSION_PATH.match(path or "")
    return m.group(1) if m else None


def normalize_path(path: str) -> str:
    """Collapse session ids and row uids so label cardinality stays bounded."""
    p = path or "/"
    p = _SESSION_PATH.sub("/api/v1/sessions/:id", p)
    p = _ROW_PATH.sub(r"\1/:uid", p)
    return re.sub(r"/\d+(?=/|$)", "/:n", p)


HTTP_REQUESTS_TOTAL = Counter(
    "cdrgov_http_requests_total",
    "HTTP requests by route and status",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "cdrgov_http_request_duration_seconds",
    "HTTP request latency",
    ["method", "path"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

SESSION_DECISIONS_TOTAL = Counter(
    "cdrgov_session_decisions_total",
    "Human decisions submitted over HTTP, by action and outcome",
    ["action", "outcome"],
)
