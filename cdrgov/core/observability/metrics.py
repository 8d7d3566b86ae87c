from __future__ import annotations

from collections import Counter
from typing import Dict

from prometheus_client import Counter as PromCounter

# Named counters (in-process snapshot)
_NAMED = Counter()

_PROM_RESOLUTIONS = PromCounter(
    "cdrgov_resolutions_total",
    "Field resolutions by outcome",
    ["outcome"],
)

_PROM_INSERTIONS = PromCounter(
    "cdrgov_insertions_total",
    "Canonical row insertions by result",
    ["result"],
)

_PROM_VIOLATIONS = PromCounter(
    "cdrgov_violations_total",
    "Structural violations reported, by rule",
    ["rule_id", "severity"],
)

_PROM_SESSIONS = PromCounter(
    "cdrgov_sessions_finished_total",
    "Governance sessions reaching a terminal state",
    ["state"],
)


def reset_metrics() -> None:
    """
    Test helper: clears the named counters to avoid cross-test leakage.
    Prometheus counters are process-global and are not reset.
    """
    _NAMED.clear()


def inc_named(name: str, value: int = 1) -> None:
    if not name:
        return
    _NAMED[name] += int(value)


def inc_resolution(outcome: str) -> None:
    _NAMED[f"resolutions_{outcome}"] += 1
    _PROM_RESOLUTIONS.labels(outcome=outcome).inc()


def inc_insertion(result: str) -> None:
    _NAMED[f"insertions_{result}"] += 1
    _PROM_INSERTIONS.labels(result=result).inc()


def inc_violation(rule_id: str, severity: str) -> None:
    _NAMED["violations_total"] += 1
    _PROM_VIOLATIONS.labels(rule_id=rule_id, severity=severity).inc()


def inc_session_finished(state: str) -> None:
    _NAMED[f"sessions_{state.lower()}"] += 1
    _PROM_SESSIONS.labels(state=state).inc()


def snapshot_named() -> Dict[str, int]:
    return dict(_NAMED)
