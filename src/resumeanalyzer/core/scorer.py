"""Job description match scoring over an existing profile set."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import structlog
from pydantic import ValidationError

from ..errors import RATE_LIMIT_SUFFIX, MalformedResponseError, MatchValidationError
from ..llm import DEFAULT_MODEL, ContentPart, InferenceClient, InferenceRequest, SleepFn, is_rate_limit_failure
from ..schemas import CandidateProfile, JobDescription, MatchScoreResponse, clamp_score
from .events import MatchSummary, PipelineObserver, RunState, now
from .profiles import ProfileSet

MATCH_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {"matchScore": {"type": "NUMBER"}},
    "required": ["matchScore"],
}

MATCH_PROMPT_TEMPLATE = """\
Job Description: "{job_description}"

Candidate Data:
- Skills: {skills}
- Experience Summary: {experience_summary}

Based on the above, what is the match percentage for this candidate for the job, from 0 to 100?
Provide the answer as JSON only, in the following format: {{"matchScore": number}}
"""


def build_match_prompt(job: JobDescription, profile: CandidateProfile) -> str:
    return MATCH_PROMPT_TEMPLATE.format(
        job_description=job.text,
        skills=", ".join(profile.skills),
        experience_summary=profile.experience_summary,
    )


@dataclass
class MatchScorerConfig:
    """Configuration for match passes."""

    pacing_delay: float = 1.0
    model: str = DEFAULT_MODEL


class MatchScorer:
    """Score every profile against a job description, one call at a time.

    The pass stops at the first failing profile: earlier profiles keep their
    new scores, the failing one and everything after keep their previous ones.
    """

    def __init__(
        self,
        client: InferenceClient,
        *,
        config: MatchScorerConfig | None = None,
        sleep: SleepFn | None = None,
    ) -> None:
        self._client = client
        self._config = config or MatchScorerConfig()
        self._sleep = sleep or asyncio.sleep
        self._logger = structlog.get_logger(__name__)

    async def score(
        self,
        profiles: ProfileSet,
        job: JobDescription,
        observer: PipelineObserver | None = None,
    ) -> MatchSummary:
        observer = observer or PipelineObserver()
        started_at = now()

        if job.is_blank or not profiles:
            message = str(MatchValidationError())
            self._logger.warning("match.rejected", profiles=len(profiles), job_blank=job.is_blank)
            observer.on_error(message)
            summary = MatchSummary(
                state=RunState.REJECTED,
                total=len(profiles),
                error=message,
                started_at=started_at,
                finished_at=now(),
            )
            observer.on_status("match", summary.state)
            return summary

        # Fixed order for the whole pass even though the set re-sorts after each score.
        queue = list(profiles.snapshot())
        total = len(queue)
        summary = MatchSummary(state=RunState.SCORING, total=total, started_at=started_at)
        observer.on_status("match", summary.state)
        self._logger.info("match.started", total=total)

        for index, candidate in enumerate(queue, start=1):
            observer.on_progress("match", index, total)
            try:
                score = await self._score_one(job, candidate)
            except Exception as exc:  # noqa: BLE001
                summary.error = self._failure_message(candidate, exc)
                summary.state = RunState.ABORTED
                summary.finished_at = now()
                self._logger.error(
                    "match.failed",
                    profile_id=candidate.id,
                    index=index,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                observer.on_error(summary.error)
                observer.on_status("match", summary.state)
                return summary

            updated = profiles.upsert_and_resort(candidate.id, score)
            summary.scored += 1
            observer.on_profile_scored(updated)
            self._logger.info("match.scored", profile_id=candidate.id, match_score=updated.match_score)

            if index < total:
                await self._sleep(self._config.pacing_delay)

        summary.state = RunState.COMPLETED
        summary.finished_at = now()
        self._logger.info("match.completed", scored=summary.scored)
        observer.on_status("match", summary.state)
        observer.on_completed(summary)
        return summary

    async def _score_one(self, job: JobDescription, profile: CandidateProfile) -> int:
        request = InferenceRequest(
            parts=(ContentPart.from_text(build_match_prompt(job, profile)),),
            response_schema=MATCH_RESPONSE_SCHEMA,
            model=self._config.model,
        )
        payload = await self._client.generate_json(request)
        try:
            response = MatchScoreResponse.model_validate(payload)
        except ValidationError as exc:
            raise MalformedResponseError(str(exc)) from exc
        return clamp_score(response.match_score)

    @staticmethod
    def _failure_message(profile: CandidateProfile, exc: BaseException) -> str:
        message = f"Error matching candidate: {profile.name}."
        if is_rate_limit_failure(exc):
            message += RATE_LIMIT_SUFFIX
        return message


__all__ = [
    "MATCH_PROMPT_TEMPLATE",
    "MATCH_RESPONSE_SCHEMA",
    "MatchScorer",
    "MatchScorerConfig",
    "build_match_prompt",
]
