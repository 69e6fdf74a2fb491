"""Pydantic schema definitions for the resume analysis pipeline."""

from __future__ import annotations

from .candidate import (
    CandidateProfile,
    ExtractedProfile,
    MatchScoreResponse,
    clamp_score,
    whatsapp_number,
)
from .document import SourceDocument
from .filters import FilterSpec
from .job import JobDescription

__all__ = [
    "CandidateProfile",
    "ExtractedProfile",
    "FilterSpec",
    "JobDescription",
    "MatchScoreResponse",
    "SourceDocument",
    "clamp_score",
    "whatsapp_number",
]
