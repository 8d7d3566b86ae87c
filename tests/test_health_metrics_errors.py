import pytest
from fastapi.testclient import TestClient

from cdrgov.api.main import app
from cdrgov.api.middleware.error_shaping import status_for
from cdrgov.api.observability.metrics import normalize_path, session_id_from_path
from cdrgov.core.errors import (
    DuplicateError,
    IllegalTransitionError,
    InvalidDecisionError,
    InvalidRowError,
    PersistenceError,
    SessionExpiredError,
    SlotConflictError,
    ValidationFailure,
)


def test_liveness_probes(client):
    assert client.get("/health/live").json() == {"status": "ok"}
    assert client.get("/api/v1/health/live").json() == {"status": "alive"}


def test_readiness_reports_dictionary_size(client, seeded_env):
    r = client.get("/api/v1/health/ready")
    assert r.status_code == 200
    assert r.json()["rows"] == 8


def test_readiness_fails_on_unreadable_dictionary(client, tmp_path, monkeypatch):
    bad = tmp_path / "cdr.json"
    bad.write_text("{broken", encoding="utf-8")
    monkeypatch.setenv("CDRGOV_DICTIONARY_PATH", str(bad))
    r = client.get("/api/v1/health/ready")
    assert r.status_code == 503
    assert r.json()["status"] == "not_ready"


def test_metrics_snapshot_counts_activity(client, seeded_env):
    client.get("/api/v1/health/live")
    client.post("/api/v1/resolve", json={"concept": "Customer", "context": "Contact", "field_name": "emailAddress"})

    body = client.get("/api/v1/metrics/snapshot").json()
    assert body["counters"]["health_live"] >= 1
    assert body["counters"]["resolutions_exact"] == 1
    assert body["dictionary_rows"] == 8
    assert body["live_sessions"] == 0


def test_prometheus_scrape(client):
    client.get("/api/v1/health/live")
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "cdrgov_http_requests_total" in r.text


def test_unhandled_error_is_shaped_without_traceback(monkeypatch, seeded_env):
    from cdrgov.api.endpoints import resolve as resolve_ep

    class Boom:
        def __init__(self, *a, **kw):
            raise RuntimeError("secret internals")

    monkeypatch.setattr(resolve_ep, "FieldResolver", Boom)
    c = TestClient(app, raise_server_exceptions=False)
    r = c.post(
        "/api/v1/resolve",
        json={"concept": "Customer", "context": "Contact", "field_name": "x"},
        headers={"X-Request-Id": "rid-500"},
    )
    assert r.status_code == 500
    assert r.json() == {"detail": "Internal Server Error", "request_id": "rid-500"}
    assert "Traceback" not in r.text
    assert "secret internals" not in r.text


@pytest.mark.parametrize(
    "exc,status",
    [
        (DuplicateError("x"), 409),
        (PersistenceError("x"), 503),
        (SlotConflictError("x"), 503),
        (InvalidDecisionError("x"), 400),
        (InvalidRowError("x"), 400),
        (IllegalTransitionError("x"), 409),
        (SessionExpiredError("x"), 410),
        (ValidationFailure([]), 422),
    ],
)
def test_error_status_mapping(exc, status):
    assert status_for(exc) == status


def test_normalize_path_collapses_ids():
    assert normalize_path("/api/v1/sessions/0123abcd/decision") == "/api/v1/sessions/:id/decision"
    assert normalize_path("/api/v1/sessions/sweep") == "/api/v1/sessions/sweep"
    assert normalize_path("/api/v1/dictionary/rows/CDR-0001") == "/api/v1/dictionary/rows/:uid"
    assert normalize_path("/api/v1/dictionary/rows") == "/api/v1/dictionary/rows"


def test_session_id_from_path():
    assert session_id_from_path("/api/v1/sessions/abc123/document") == "abc123"
    assert session_id_from_path("/api/v1/sessions/sweep") is None
    assert session_id_from_path("/api/v1/resolve") is None


def test_decision_outcomes_are_counted(client, seeded_env, make_skeleton):
    sid = client.post("/api/v1/sessions", json=make_skeleton(["mobileNumber"]).model_dump()).json()["session_id"]
    client.post(f"/api/v1/sessions/{sid}/decision", json={"action": "select", "uid": "CDR-0101"})
    client.post(f"/api/v1/sessions/{sid}/decision", json={"action": "select", "uid": "CDR-0002"})

    text = client.get("/metrics").text
    assert 'cdrgov_session_decisions_total{action="select",outcome="invalid_decision"}' in text
    assert 'cdrgov_session_decisions_total{action="select",outcome="accepted"}' in text
