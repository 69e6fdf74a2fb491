from __future__ import annotations

import math
import re
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PrivateAttr, field_validator

from .document import SourceDocument

_NON_DIGITS_RE = re.compile(r"\D")


def _coerce_age(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return None if math.isnan(value) or math.isinf(value) else round(value)
    if isinstance(value, str):
        try:
            return round(float(value.strip()))
        except ValueError:
            return None
    return None


Age = Annotated[int | None, BeforeValidator(_coerce_age)]


def clamp_score(value: float | int) -> int:
    """Clamp a match score into the 0-100 percentage range."""
    if isinstance(value, float):
        if math.isnan(value):
            return 0
        if math.isinf(value):
            return 100 if value > 0 else 0
    return int(min(max(round(value), 0), 100))


class ExtractedProfile(BaseModel):
    """Structured resume fields as returned by the inference service."""

    name: str
    age: Age = None
    governorate: str | None = None
    email: str | None = None
    phone: str | None = None
    applied_for: str | None = Field(default=None, alias="appliedFor")
    skills: list[str]
    experience_summary: str = Field(alias="experienceSummary")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class MatchScoreResponse(BaseModel):
    """Structured scoring answer for a single candidate."""

    match_score: float = Field(alias="matchScore")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CandidateProfile(BaseModel):
    """Candidate profile extracted from one resume document."""

    id: str
    name: str | None = None
    age: Age = None
    governorate: str | None = None
    email: str | None = None
    phone: str | None = None
    applied_for: str | None = Field(default=None, alias="appliedFor")
    skills: list[str] = Field(default_factory=list)
    experience_summary: str = Field(alias="experienceSummary")
    match_score: int | None = Field(default=None, alias="matchScore")
    file_name: str | None = Field(default=None, alias="fileName")
    file_type: str | None = Field(default=None, alias="fileType")
    _source: SourceDocument | None = PrivateAttr(default=None)

    model_config = ConfigDict(populate_by_name=True, extra="forbid", validate_assignment=True)

    @field_validator("match_score", mode="before")
    @classmethod
    def clamp_match_score(cls, value: Any) -> int | None:
        if value is None:
            return None
        return clamp_score(value)

    @classmethod
    def from_extraction(
        cls,
        extracted: ExtractedProfile,
        *,
        profile_id: str,
        source: SourceDocument,
    ) -> "CandidateProfile":
        profile = cls(
            id=profile_id,
            **extracted.model_dump(by_alias=False),
            match_score=None,
            file_name=source.name,
            file_type=source.media_type,
        )
        profile._source = source
        return profile

    @property
    def source(self) -> SourceDocument | None:
        """Originating document, kept for later viewing until released."""
        return self._source

    @property
    def whatsapp_number(self) -> str:
        return whatsapp_number(self.phone)

    def release_source(self) -> None:
        if self._source is not None:
            self._source.release()

    def to_public_dict(self) -> dict[str, Any]:
        """Presentation payload keyed by the service's camelCase names."""
        return self.model_dump(mode="json", by_alias=True)


def whatsapp_number(phone: str | None) -> str:
    """Normalise an Egyptian phone number into WhatsApp's international form."""
    if not phone:
        return ""
    digits = _NON_DIGITS_RE.sub("", str(phone))
    if digits.startswith("20"):
        return digits
    if digits.startswith("01") and len(digits) == 11:
        return "20" + digits[1:]
    if digits.startswith("1") and len(digits) == 10:
        return "20" + digits
    return digits
