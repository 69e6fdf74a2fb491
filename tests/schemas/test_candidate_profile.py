from __future__ import annotations

import pytest
from pydantic import ValidationError

from resumeanalyzer.schemas import CandidateProfile, ExtractedProfile, SourceDocument, clamp_score, whatsapp_number


def test_extracted_profile_accepts_service_aliases_and_ignores_extras():
    extracted = ExtractedProfile.model_validate(
        {
            "name": "Hana",
            "age": "27.6",
            "appliedFor": "Data Analyst",
            "skills": ["SQL"],
            "experienceSummary": "Three years of reporting.",
            "confidence": 0.9,
        }
    )

    assert extracted.age == 28
    assert extracted.applied_for == "Data Analyst"
    assert extracted.experience_summary == "Three years of reporting."


def test_extracted_profile_requires_core_fields():
    with pytest.raises(ValidationError):
        ExtractedProfile.model_validate({"name": "No Skills", "experienceSummary": ""})


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(31, 31), (30.4, 30), ("unknown", None), (True, None), (float("nan"), None), (None, None)],
)
def test_age_coercion(raw, expected):
    assert CandidateProfile(id="p", experience_summary="", age=raw).age == expected


def test_from_extraction_links_source_and_file_metadata():
    document = SourceDocument(name="cv.docx", data=b"docx", media_type="application/msword")
    extracted = ExtractedProfile(name="Karim", skills=["Excel"], experienceSummary="Finance")

    profile = CandidateProfile.from_extraction(extracted, profile_id="Karim-1", source=document)

    assert profile.id == "Karim-1"
    assert profile.file_name == "cv.docx"
    assert profile.file_type == "application/msword"
    assert profile.source is document

    profile.release_source()
    assert document.released


def test_public_dict_uses_camel_case_and_omits_document_bytes():
    document = SourceDocument(name="cv.pdf", data=b"%PDF secret", media_type="application/pdf")
    profile = CandidateProfile.from_extraction(
        ExtractedProfile(name="Mai", appliedFor="QA", skills=["Selenium"], experienceSummary="Testing"),
        profile_id="Mai-1",
        source=document,
    )
    profile.match_score = 77.5

    payload = profile.to_public_dict()

    assert payload["appliedFor"] == "QA"
    assert payload["experienceSummary"] == "Testing"
    assert payload["matchScore"] == 78
    assert payload["fileName"] == "cv.pdf"
    assert "source" not in payload
    assert b"%PDF secret" not in repr(payload).encode()


def test_unknown_fields_are_rejected_on_profiles():
    with pytest.raises(ValidationError):
        CandidateProfile(id="p", experience_summary="", salary=1000)


def test_clamp_score_bounds():
    assert clamp_score(-3) == 0
    assert clamp_score(100.4) == 100
    assert clamp_score(float("nan")) == 0
    assert clamp_score(64.6) == 65


@pytest.mark.parametrize(
    ("phone", "expected"),
    [
        ("01012345678", "201012345678"),
        ("+20 101 234 5678", "201012345678"),
        ("1012345678", "201012345678"),
        ("555-1234", "5551234"),
        (None, ""),
    ],
)
def test_whatsapp_number(phone, expected):
    assert whatsapp_number(phone) == expected


def test_clamp_score_handles_infinity():
    assert clamp_score(float("inf")) == 100
    assert clamp_score(float("-inf")) == 0
    assert CandidateProfile(id="p", experience_summary="", match_score=float("inf")).match_score == 100
