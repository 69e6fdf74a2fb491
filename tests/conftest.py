from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable

import pytest
import structlog

from resumeanalyzer.core import IngestionSummary, MatchSummary, PipelineObserver, RunState
from resumeanalyzer.llm import InferenceRequest
from resumeanalyzer.schemas import CandidateProfile, SourceDocument

Outcome = str | dict[str, Any] | BaseException


class StubBackend:
    """Inference backend replaying scripted outcomes.

    ``script`` is either a list consumed in call order or a callable mapping the
    request to an outcome. Dict outcomes are JSON-encoded; exceptions are raised.
    """

    def __init__(self, script: list[Outcome] | Callable[[InferenceRequest], Outcome]):
        self._script = script
        self.requests: list[InferenceRequest] = []

    async def generate(self, request: InferenceRequest) -> str:
        self.requests.append(request)
        if callable(self._script):
            outcome = self._script(request)
        else:
            outcome = self._script.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, dict):
            return json.dumps(outcome, ensure_ascii=False)
        return outcome

    @property
    def documents_sent(self) -> list[bytes]:
        return [part.data for request in self.requests for part in request.parts if part.is_blob]


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def sleep(self, delay: float) -> None:
        self.delays.append(delay)


@dataclass
class RecordingObserver(PipelineObserver):
    events: list[tuple[str, Any]] = field(default_factory=list)

    def on_status(self, stage: str, state: RunState) -> None:
        self.events.append(("status", (stage, state)))

    def on_progress(self, stage: str, processed: int, total: int) -> None:
        self.events.append(("progress", (stage, processed, total)))

    def on_profile_added(self, profile: CandidateProfile) -> None:
        self.events.append(("profile_added", profile.name))

    def on_profile_scored(self, profile: CandidateProfile) -> None:
        self.events.append(("profile_scored", (profile.name, profile.match_score)))

    def on_completed(self, summary: IngestionSummary | MatchSummary) -> None:
        self.events.append(("completed", summary))

    def on_error(self, message: str) -> None:
        self.events.append(("error", message))

    def of_kind(self, kind: str) -> list[Any]:
        return [payload for event_kind, payload in self.events if event_kind == kind]


def profile_payload(name: str, email: str | None = None, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "name": name,
        "skills": extra.pop("skills", ["Python"]),
        "experienceSummary": extra.pop("experienceSummary", f"{name} has five years of experience."),
    }
    if email is not None:
        payload["email"] = email
    payload.update(extra)
    return payload


def by_document(outcomes: dict[bytes, Outcome]) -> Callable[[InferenceRequest], Outcome]:
    """Script keyed by the document bytes of an extraction request."""

    def handler(request: InferenceRequest) -> Outcome:
        blob = next(part.data for part in request.parts if part.is_blob)
        return outcomes[blob]

    return handler


def make_document(name: str, data: bytes | None = None, media_type: str = "application/pdf") -> SourceDocument:
    return SourceDocument(name=name, data=data if data is not None else name.encode(), media_type=media_type)


def make_profile(profile_id: str, **fields: Any) -> CandidateProfile:
    fields.setdefault("experience_summary", "Summary")
    return CandidateProfile(id=profile_id, **fields)


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def stub_backend() -> type[StubBackend]:
    return StubBackend


@pytest.fixture
def helpers() -> Any:
    class Helpers:
        profile_payload = staticmethod(profile_payload)
        by_document = staticmethod(by_document)
        make_document = staticmethod(make_document)
        make_profile = staticmethod(make_profile)

    return Helpers
