import pytest

from cdrgov.core.errors import (
    DuplicateError,
    IllegalTransitionError,
    InvalidDecisionError,
    SessionExpiredError,
    ValidationFailure,
)
from cdrgov.core.insertion import InsertionCoordinator
from cdrgov.core.observability.metrics import snapshot_named
from cdrgov.core.resolution import Exact, FieldResolver, NoMatch, Suggestions
from cdrgov.core.session import (
    Abort,
    ApproveInsertion,
    GovernanceSession,
    SelectExisting,
    SessionState,
    SessionStore,
    sweep_stale_sessions,
)


class _Clock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _session(dictionary, audit_file, **kw):
    return GovernanceSession(
        dictionary,
        coordinator=InsertionCoordinator(dictionary, audit_path=audit_file),
        **kw,
    )


def _response_fields(doc):
    return [f.name for f in doc.type_named("CustomerContactResponse").fields]


def test_all_exact_fields_go_straight_to_ready(dictionary, audit_file, clean_skeleton):
    s = _session(dictionary, audit_file)
    s.collect(clean_skeleton)
    assert s.run() == SessionState.READY

    doc = s.document()
    assert _response_fields(doc) == ["emailAddress", "smsNumber"]
    field = doc.type_named("CustomerContactResponse").fields[1]
    assert field.path == ["customer", "contact"]
    assert field.ref.long_name == "Customer:Contact:smsNumber"
    assert field.description == "Mobile number able to receive text messages."
    assert snapshot_named()["sessions_ready"] == 1


def test_near_miss_then_select_existing(dictionary, audit_file, make_skeleton):
    s = _session(dictionary, audit_file)
    s.collect(make_skeleton(["emailAddress", "mobileNumber"]))
    assert s.run() == SessionState.AWAITING_APPROVAL

    pending = s.pending
    assert pending.request.field_name == "mobileNumber"
    assert isinstance(pending.result, Suggestions)
    assert [r.data_requirement for r in pending.result.rows] == ["smsNumber", "homePhoneNumber", "workPhoneNumber"]

    before = len(dictionary)
    assert s.decide(SelectExisting(uid="CDR-0002")) == SessionState.READY
    assert len(dictionary) == before
    assert _response_fields(s.document()) == ["emailAddress", "smsNumber"]


def test_no_match_then_approved_insertion(dictionary, audit_file, make_skeleton):
    s = _session(dictionary, audit_file)
    s.collect(make_skeleton(["emailAddress", "preferredLanguage"]))
    assert s.run() == SessionState.AWAITING_APPROVAL
    assert isinstance(s.pending.result, NoMatch)

    before = len(dictionary)
    state = s.decide(
        ApproveInsertion(
            definition="Language the customer prefers for correspondence.",
            data_type="string",
            uid="CDR-0100",
            approver="data.steward",
        )
    )
    assert state == SessionState.READY
    assert len(dictionary) == before + 1
    assert dictionary.get("Customer", "Contact", "preferredLanguage").uid == "CDR-0100"
    assert _response_fields(s.document()) == ["emailAddress", "preferredLanguage"]


def test_declined_suggestions_then_approved_insertion(dictionary, audit_file, make_skeleton):
    s = _session(dictionary, audit_file)
    s.collect(make_skeleton(["emailAddress", "mobileNumber"]))
    assert s.run() == SessionState.AWAITING_APPROVAL
    assert isinstance(s.pending.result, Suggestions)

    before = len(dictionary)
    state = s.decide(
        ApproveInsertion(
            definition="Mobile phone number of the customer.",
            data_type="string",
            uid="CDR-0102",
            approver="data.steward",
        )
    )
    assert state == SessionState.READY
    assert len(dictionary) == before + 1

    again = FieldResolver(dictionary).resolve("Customer", "Contact", "mobileNumber")
    assert isinstance(again, Exact)
    assert again.row.uid == "CDR-0102"
    assert _response_fields(s.document()) == ["emailAddress", "mobileNumber"]


def test_approval_survives_an_unwritable_audit_log(dictionary, tmp_path, make_skeleton):
    s = GovernanceSession(dictionary, coordinator=InsertionCoordinator(dictionary, audit_path=tmp_path))
    s.collect(make_skeleton(["preferredLanguage"]))
    s.run()

    s.decide(ApproveInsertion(definition="Preferred language.", data_type="string", uid="CDR-0100"))
    assert s.state == SessionState.READY
    assert dictionary.get("Customer", "Contact", "preferredLanguage").uid == "CDR-0100"


def test_several_pending_fields_are_decided_in_order(dictionary, audit_file, make_skeleton):
    s = _session(dictionary, audit_file)
    s.collect(make_skeleton(["mobileNumber", "preferredLanguage"]))
    s.run()
    assert s.pending.request.field_name == "mobileNumber"

    assert s.decide(SelectExisting(uid="CDR-0003")) == SessionState.AWAITING_APPROVAL
    assert s.pending.request.field_name == "preferredLanguage"

    s.decide(ApproveInsertion(definition="Preferred language.", data_type="string", uid="CDR-0100"))
    assert s.state == SessionState.READY
    assert _response_fields(s.document()) == ["homePhoneNumber", "preferredLanguage"]


def test_structural_violation_rejects_and_discards_document(dictionary, audit_file, make_skeleton):
    skeleton = make_skeleton(["emailAddress"])
    skeleton.endpoints[0].path = "/customer/{customerId}"
    s = _session(dictionary, audit_file)
    s.collect(skeleton)
    assert s.run() == SessionState.REJECTED

    with pytest.raises(ValidationFailure) as ei:
        s.document()
    assert "URI-004" in [v.rule_id for v in ei.value.violations]
    assert ei.value.to_dict()["violations"]
    assert snapshot_named()["sessions_rejected"] == 1


def test_selecting_a_row_from_another_pair_is_refused(dictionary, audit_file, make_skeleton):
    s = _session(dictionary, audit_file)
    s.collect(make_skeleton(["mobileNumber"]))
    s.run()

    with pytest.raises(InvalidDecisionError):
        s.decide(SelectExisting(uid="CDR-0101"))
    with pytest.raises(InvalidDecisionError):
        s.decide(SelectExisting(uid="CDR-NOPE"))
    assert s.state == SessionState.AWAITING_APPROVAL
    assert s.pending is not None


def test_failed_insertion_keeps_the_session_waiting(dictionary, audit_file, make_skeleton):
    s = _session(dictionary, audit_file)
    s.collect(make_skeleton(["preferredLanguage"]))
    s.run()

    before = dictionary.rows()
    with pytest.raises(DuplicateError):
        s.decide(ApproveInsertion(definition="Preferred language.", data_type="string", uid="CDR-0001"))
    assert s.state == SessionState.AWAITING_APPROVAL
    assert s.pending.request.field_name == "preferredLanguage"
    assert dictionary.rows() == before

    s.decide(ApproveInsertion(definition="Preferred language.", data_type="string", uid="CDR-0100"))
    assert s.state == SessionState.READY


def test_abort_cancels(dictionary, audit_file, make_skeleton):
    s = _session(dictionary, audit_file)
    s.collect(make_skeleton(["mobileNumber"]))
    s.run()

    assert s.decide(Abort(reason="wrong field")) == SessionState.CANCELED
    assert s.terminal_reason == "wrong field"
    assert s.pending is None


def test_cancel_is_idempotent_and_leaves_dictionary_alone(dictionary, audit_file, make_skeleton):
    before = dictionary.rows()
    s = _session(dictionary, audit_file)
    s.collect(make_skeleton(["preferredLanguage"]))
    s.run()

    assert s.cancel() == SessionState.CANCELED
    assert s.cancel() == SessionState.CANCELED
    assert dictionary.rows() == before
    assert s.to_dict()["fields"] == []

    with pytest.raises(IllegalTransitionError):
        s.decide(SelectExisting(uid="CDR-0002"))
    with pytest.raises(IllegalTransitionError):
        s.document()


def test_decision_after_ttl_expires_the_session(dictionary, audit_file, make_skeleton):
    clock = _Clock()
    s = _session(dictionary, audit_file, approval_ttl_seconds=60, clock=clock)
    s.collect(make_skeleton(["mobileNumber"]))
    s.run()

    clock.now += 61
    with pytest.raises(SessionExpiredError):
        s.decide(SelectExisting(uid="CDR-0002"))
    assert s.state == SessionState.EXPIRED
    assert s.terminal_reason == "approval_timeout"


def test_decision_within_ttl_is_accepted(dictionary, audit_file, make_skeleton):
    clock = _Clock()
    s = _session(dictionary, audit_file, approval_ttl_seconds=60, clock=clock)
    s.collect(make_skeleton(["mobileNumber"]))
    s.run()

    clock.now += 60
    assert s.decide(SelectExisting(uid="CDR-0002")) == SessionState.READY


def test_sweep_expires_only_stale_sessions(dictionary, audit_file, make_skeleton):
    clock = _Clock()
    store = SessionStore()

    stale = _session(dictionary, audit_file, approval_ttl_seconds=10, clock=clock)
    stale.collect(make_skeleton(["mobileNumber"]))
    stale.run()
    store.put(stale)

    fresh = _session(dictionary, audit_file, approval_ttl_seconds=1000, clock=clock)
    fresh.collect(make_skeleton(["mobileNumber"]))
    fresh.run()
    store.put(fresh)

    clock.now += 30
    assert sweep_stale_sessions(store) == [stale.session_id]
    assert stale.state == SessionState.EXPIRED
    assert fresh.state == SessionState.AWAITING_APPROVAL


def test_sweep_drops_finished_sessions_after_retention(dictionary, audit_file, make_skeleton, clean_skeleton):
    clock = _Clock()
    store = SessionStore()

    done = _session(dictionary, audit_file, clock=clock)
    done.collect(clean_skeleton)
    done.run()
    store.put(done)

    waiting = _session(dictionary, audit_file, approval_ttl_seconds=1000, clock=clock)
    waiting.collect(make_skeleton(["mobileNumber"]))
    waiting.run()
    store.put(waiting)

    clock.now += 30
    assert sweep_stale_sessions(store, retention_seconds=60) == []
    assert len(store) == 2

    clock.now += 31
    assert sweep_stale_sessions(store, retention_seconds=60) == []
    assert store.get(done.session_id) is None
    assert store.get(waiting.session_id) is waiting
    assert len(store) == 1


def test_collect_only_before_resolution(dictionary, audit_file, clean_skeleton):
    s = _session(dictionary, audit_file)
    with pytest.raises(IllegalTransitionError):
        s.run()
    s.collect(clean_skeleton)
    s.run()
    with pytest.raises(IllegalTransitionError):
        s.collect(clean_skeleton)


def test_to_dict_describes_pending_decision(dictionary, audit_file, make_skeleton):
    s = _session(dictionary, audit_file)
    s.collect(make_skeleton(["mobileNumber"]))
    s.run()

    out = s.to_dict()
    assert out["state"] == "AWAITING_APPROVAL"
    assert out["pending"]["result"]["kind"] == "suggestions"
    assert out["pending"]["request"]["field_name"] == "mobileNumber"
    assert out["allowed_next"] == {"RESOLVING": True, "EXPIRED": True, "CANCELED": True}
