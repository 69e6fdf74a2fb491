"""Run states, summaries and observer hooks for ingestion and matching."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

import pendulum

from ..schemas import CandidateProfile

Stage = Literal["ingest", "match"]


class RunState(str, Enum):
    IDLE = "idle"
    PREPARING = "preparing"
    EXTRACTING = "extracting"
    SCORING = "scoring"
    COMPLETED = "completed"
    ABORTED = "aborted"
    REJECTED = "rejected"


@dataclass(slots=True)
class IngestionSummary:
    """Outcome of one ingestion run."""

    state: RunState
    total_documents: int = 0
    processed: int = 0
    unique_count: int = 0
    duplicate_count: int = 0
    error: str | None = None
    started_at: pendulum.DateTime | None = None
    finished_at: pendulum.DateTime | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is RunState.COMPLETED

    @property
    def message(self) -> str:
        if self.error:
            return self.error
        return f"Analyzed {self.unique_count} unique resumes ({self.duplicate_count} duplicates removed)."

    def to_dict(self) -> dict[str, Any]:
        return _summary_dict(self, "total_documents", "processed", "unique_count", "duplicate_count")


@dataclass(slots=True)
class MatchSummary:
    """Outcome of one match pass."""

    state: RunState
    total: int = 0
    scored: int = 0
    error: str | None = None
    started_at: pendulum.DateTime | None = None
    finished_at: pendulum.DateTime | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is RunState.COMPLETED

    @property
    def message(self) -> str:
        return self.error or "Matching process completed!"

    def to_dict(self) -> dict[str, Any]:
        return _summary_dict(self, "total", "scored")


def _summary_dict(summary: IngestionSummary | MatchSummary, *counters: str) -> dict[str, Any]:
    payload: dict[str, Any] = {"state": summary.state.value}
    payload.update({name: getattr(summary, name) for name in counters})
    payload["error"] = summary.error
    payload["message"] = summary.message
    payload["started_at"] = summary.started_at.to_iso8601_string() if summary.started_at else None
    payload["finished_at"] = summary.finished_at.to_iso8601_string() if summary.finished_at else None
    return payload


class PipelineObserver:
    """Receives run events in processing order. Override the hooks you need."""

    def on_status(self, stage: Stage, state: RunState) -> None:
        pass

    def on_progress(self, stage: Stage, processed: int, total: int) -> None:
        pass

    def on_profile_added(self, profile: CandidateProfile) -> None:
        pass

    def on_profile_scored(self, profile: CandidateProfile) -> None:
        pass

    def on_completed(self, summary: IngestionSummary | MatchSummary) -> None:
        pass

    def on_error(self, message: str) -> None:
        pass


def now() -> pendulum.DateTime:
    return pendulum.now("UTC")


__all__ = [
    "IngestionSummary",
    "MatchSummary",
    "PipelineObserver",
    "RunState",
    "Stage",
    "now",
]
