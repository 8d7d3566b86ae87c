import os
from pathlib import Path
from typing import List

import pytest
from fastapi.testclient import TestClient

from cdrgov.api.main import app
from cdrgov.api.state import reset_shared_state
from cdrgov.core.dictionary import CanonicalDictionary, CdrRow
from cdrgov.core.document import (
    CachingPolicy,
    DocumentField,
    DocumentModel,
    DocumentSkeleton,
    Endpoint,
    FieldRequest,
    TypeDefinition,
    TypeSkeleton,
    field_from_row,
)
from cdrgov.core.observability.metrics import reset_metrics


@pytest.fixture(scope="session", autouse=True)
def _force_test_env(tmp_path_factory):
    # Make runtime behave deterministically in tests
    os.environ.setdefault("CDRGOV_ENV", "dev")
    os.environ.setdefault("CDRGOV_AUDIT_PATH", str(tmp_path_factory.mktemp("audit") / "audit.log"))


@pytest.fixture(autouse=True)
def _clean_state():
    reset_metrics()
    reset_shared_state()
    yield
    reset_shared_state()


SAMPLE_ROWS = [
    ("Customer", "Contact", "emailAddress", "The customer's primary email address.", "string", "CDR-0001"),
    ("Customer", "Contact", "smsNumber", "Mobile number able to receive text messages.", "string", "CDR-0002"),
    ("Customer", "Contact", "homePhoneNumber", "Landline number at the customer's residence.", "string", "CDR-0003"),
    ("Customer", "Contact", "workPhoneNumber", "Number at the customer's place of work.", "string", "CDR-0004"),
    ("Customer", "Profile", "customerId", "Unique identifier of the customer.", "string", "CDR-0005"),
    ("Customer", "Profile", "createdAt", "When the customer record was created.", "datetime", "CDR-0006"),
    ("Customer", "Profile", "isActive", "Whether the customer can transact.", "boolean", "CDR-0007"),
    ("Supplier", "Contact", "emailAddress", "The supplier's order desk email address.", "string", "CDR-0101"),
]


@pytest.fixture()
def sample_rows() -> List[CdrRow]:
    return [
        CdrRow(concept=c, context=x, data_requirement=d, definition=defn, data_type=t, uid=u)
        for c, x, d, defn, t, u in SAMPLE_ROWS
    ]


@pytest.fixture()
def dictionary(sample_rows) -> CanonicalDictionary:
    return CanonicalDictionary.from_rows(sample_rows)


@pytest.fixture()
def audit_file(tmp_path: Path) -> Path:
    return tmp_path / "audit" / "audit.log"


def error_envelope() -> List[DocumentField]:
    return [
        DocumentField(name="code", required=True, description="Machine-readable error code."),
        DocumentField(name="message", required=True, description="Human-readable explanation of the error."),
    ]


def customer_endpoints() -> List[Endpoint]:
    common = dict(security=["oauth2"], headers=["X-Correlation-Id"], error_type="CustomerErrorResponse")
    return [
        Endpoint(
            method="GET",
            path="/customers/{customerId}",
            intent="read",
            description="Fetch a customer's contact details.",
            status_codes=[200, 401, 404, 500],
            caching=CachingPolicy(cache_control="private, max-age=60", etag=True),
            response_type="CustomerContactResponse",
            **common,
        ),
        Endpoint(
            method="PUT",
            path="/customers/{customerId}",
            intent="replace",
            description="Replace a customer's contact details.",
            status_codes=[200, 400, 401, 404, 500],
            request_type="CustomerContactRequest",
            response_type="CustomerContactResponse",
            **common,
        ),
    ]


def skeleton_with(response_fields: List[str], request_fields: List[str] = ("emailAddress",)) -> DocumentSkeleton:
    return DocumentSkeleton(
        title="Customer Contact API",
        base_uri="https://api.example.com/customers/v1",
        version="v1",
        security_schemes=["oauth2"],
        types=[
            TypeSkeleton(
                name="CustomerContactRequest",
                role="request",
                fields=[FieldRequest(concept="Customer", context="Contact", field_name=n, required=True) for n in request_fields],
            ),
            TypeSkeleton(
                name="CustomerContactResponse",
                role="response",
                fields=[FieldRequest(concept="Customer", context="Contact", field_name=n) for n in response_fields],
            ),
            TypeSkeleton(name="CustomerErrorResponse", role="error", envelope=error_envelope()),
        ],
        endpoints=customer_endpoints(),
    )


@pytest.fixture()
def make_skeleton():
    return skeleton_with


@pytest.fixture()
def clean_skeleton() -> DocumentSkeleton:
    return skeleton_with(["emailAddress", "smsNumber"])


@pytest.fixture()
def clean_document(dictionary) -> DocumentModel:
    contact = dictionary.filter("Customer", "Contact")
    by_name = {r.data_requirement: r for r in contact}
    return DocumentModel(
        title="Customer Contact API",
        base_uri="https://api.example.com/customers/v1",
        version="v1",
        security_schemes=["oauth2"],
        types=[
            TypeDefinition(
                name="CustomerContactRequest",
                role="request",
                fields=[field_from_row(by_name["emailAddress"], required=True)],
            ),
            TypeDefinition(
                name="CustomerContactResponse",
                role="response",
                fields=[
                    field_from_row(by_name["emailAddress"], required=False),
                    field_from_row(by_name["smsNumber"], required=False),
                ],
            ),
            TypeDefinition(name="CustomerErrorResponse", role="error", fields=error_envelope()),
        ],
        endpoints=customer_endpoints(),
    )


@pytest.fixture()
def client():
    return TestClient(app)


@pytest.fixture()
def seeded_env(tmp_path: Path, monkeypatch):
    """Point the shared dictionary at a JSON file seeded from a CSV export."""
    seed = tmp_path / "cdr.csv"
    lines = ["Concept,Context,Data Requirement,Long Name,Definition,Data Type,UID"]
    for c, x, d, defn, t, u in SAMPLE_ROWS:
        lines.append(f'{c},{x},{d},{c}:{x}:{d},"{defn}",{t},{u}')
    seed.write_text("\n".join(lines) + "\n", encoding="utf-8")
    monkeypatch.setenv("CDRGOV_SEED_PATH", str(seed))
    monkeypatch.setenv("CDRGOV_DICTIONARY_PATH", str(tmp_path / "store" / "cdr.json"))
    monkeypatch.setenv("CDRGOV_AUDIT_PATH", str(tmp_path / "audit.log"))
    return tmp_path
