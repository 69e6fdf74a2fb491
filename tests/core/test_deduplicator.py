from __future__ import annotations

import itertools

from resumeanalyzer.core import Deduplicator, IdentityKey
from resumeanalyzer.schemas import CandidateProfile


def build_profile(profile_id: str, name: str | None = None, email: str | None = None) -> CandidateProfile:
    return CandidateProfile(id=profile_id, name=name, email=email, experience_summary="")


def test_identity_key_normalises_case_and_missing_fields():
    profile = build_profile("1", name="Ahmed Ali", email="Ahmed@Example.COM")

    key = IdentityKey.of(profile)

    assert key == IdentityKey("ahmed ali", "ahmed@example.com")
    assert str(key) == "ahmed ali|ahmed@example.com"
    assert IdentityKey.of(build_profile("2")) == IdentityKey("", "")


def test_is_new_records_first_sighting_only():
    dedup = Deduplicator()
    original = build_profile("1", name="Sara", email="sara@example.com")
    repeat = build_profile("2", name="SARA", email="SARA@example.com")

    assert dedup.is_new(original) is True
    assert dedup.is_new(repeat) is False
    assert len(dedup) == 1
    assert repeat in dedup


def test_exactly_one_retained_regardless_of_order():
    variants = [
        build_profile("a", name="Omar", email="omar@x.io"),
        build_profile("b", name="omar", email="OMAR@x.io"),
        build_profile("c", name="OMAR", email="Omar@X.io"),
    ]
    for ordering in itertools.permutations(variants):
        dedup = Deduplicator()
        kept = [profile.id for profile in ordering if dedup.is_new(profile)]
        assert kept == [ordering[0].id]


def test_profiles_without_name_and_email_collapse_into_one():
    dedup = Deduplicator()

    assert dedup.is_new(build_profile("1")) is True
    assert dedup.is_new(build_profile("2", name="", email="")) is False


def test_same_name_different_email_are_distinct():
    dedup = Deduplicator()

    assert dedup.is_new(build_profile("1", name="Nour", email="nour@a.com"))
    assert dedup.is_new(build_profile("2", name="Nour", email="nour@b.com"))
    assert dedup.is_new(build_profile("3", name="Nour"))

    dedup.reset()
    assert len(dedup) == 0
