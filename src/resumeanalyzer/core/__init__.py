"""Core ingestion and scoring components."""

from __future__ import annotations

from .dedup import Deduplicator, IdentityKey
from .events import IngestionSummary, MatchSummary, PipelineObserver, RunState
from .extractor import ExtractionFailure, ProfileExtractor
from .filters import filter_profiles
from .profiles import ProfileSet
from .scorer import MatchScorer, MatchScorerConfig

__all__ = [
    "Deduplicator",
    "ExtractionFailure",
    "IdentityKey",
    "IngestionSummary",
    "MatchScorer",
    "MatchScorerConfig",
    "MatchSummary",
    "PipelineObserver",
    "ProfileExtractor",
    "ProfileSet",
    "RunState",
    "filter_profiles",
]
