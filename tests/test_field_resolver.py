import pytest

from cdrgov.core.observability.metrics import snapshot_named
from cdrgov.core.resolution import Exact, FieldResolver, NoMatch, Suggestions, similarity


def test_exact_match_under_the_pair(dictionary):
    result = FieldResolver(dictionary).resolve("Customer", "Contact", "emailAddress")
    assert isinstance(result, Exact)
    assert result.kind == "exact"
    assert result.row.uid == "CDR-0001"


def test_exact_match_is_case_sensitive(dictionary):
    result = FieldResolver(dictionary).resolve("Customer", "Contact", "EmailAddress")
    assert not isinstance(result, Exact)


def test_pair_scopes_the_lookup(dictionary):
    result = FieldResolver(dictionary).resolve("Supplier", "Contact", "emailAddress")
    assert isinstance(result, Exact)
    assert result.row.uid == "CDR-0101"

    result = FieldResolver(dictionary).resolve("Supplier", "Contact", "smsNumber")
    assert isinstance(result, NoMatch)


def test_mobile_number_suggests_phone_numbers_best_first(dictionary):
    result = FieldResolver(dictionary).resolve("Customer", "Contact", "mobileNumber")
    assert isinstance(result, Suggestions)
    assert [r.data_requirement for r in result.rows] == ["smsNumber", "homePhoneNumber", "workPhoneNumber"]
    scores = [s.score for s in result.candidates]
    assert scores == sorted(scores, reverse=True)
    assert result.to_dict()["kind"] == "suggestions"


def test_unrelated_name_is_no_match(dictionary):
    result = FieldResolver(dictionary).resolve("Customer", "Contact", "preferredLanguage")
    assert isinstance(result, NoMatch)
    assert result.to_dict() == {"kind": "no_match"}


def test_threshold_is_inclusive(dictionary):
    boundary = similarity("mobileNumber", "workPhoneNumber")

    at = FieldResolver(dictionary, threshold=boundary).resolve("Customer", "Contact", "mobileNumber")
    assert "workPhoneNumber" in [r.data_requirement for r in at.rows]

    above = FieldResolver(dictionary, threshold=boundary + 1e-9).resolve("Customer", "Contact", "mobileNumber")
    assert "workPhoneNumber" not in [r.data_requirement for r in above.rows]


def test_threshold_from_environment(dictionary, monkeypatch):
    monkeypatch.setenv("CDRGOV_SIMILARITY_THRESHOLD", "0.42")
    result = FieldResolver(dictionary).resolve("Customer", "Contact", "mobileNumber")
    assert [r.data_requirement for r in result.rows] == ["smsNumber"]

    monkeypatch.setenv("CDRGOV_SIMILARITY_THRESHOLD", "not-a-number")
    assert FieldResolver(dictionary).threshold == pytest.approx(0.35)


def test_max_suggestions_truncates(dictionary):
    result = FieldResolver(dictionary, max_suggestions=1).resolve("Customer", "Contact", "mobileNumber")
    assert len(result.candidates) == 1
    assert result.rows[0].data_requirement == "smsNumber"


def test_ties_keep_dictionary_order(dictionary):
    flat = FieldResolver(dictionary, scorer=lambda a, b: 0.5)
    result = flat.resolve("Customer", "Contact", "mobileNumber")
    assert [r.uid for r in result.rows] == ["CDR-0001", "CDR-0002", "CDR-0003", "CDR-0004"]


def test_resolve_is_pure(dictionary):
    before = dictionary.rows()
    resolver = FieldResolver(dictionary)
    first = resolver.resolve("Customer", "Contact", "mobileNumber")
    second = resolver.resolve("Customer", "Contact", "mobileNumber")
    assert first == second
    assert dictionary.rows() == before


def test_empty_field_name_rejected(dictionary):
    with pytest.raises(ValueError):
        FieldResolver(dictionary).resolve("Customer", "Contact", "  ")


def test_outcomes_are_counted(dictionary):
    resolver = FieldResolver(dictionary)
    resolver.resolve("Customer", "Contact", "emailAddress")
    resolver.resolve("Customer", "Contact", "mobileNumber")
    resolver.resolve("Customer", "Contact", "preferredLanguage")
    snap = snapshot_named()
    assert snap["resolutions_exact"] == 1
    assert snap["resolutions_suggestions"] == 1
    assert snap["resolutions_no_match"] == 1
