"""Session context tying ingestion, matching and filtering together."""

from __future__ import annotations

import asyncio
from typing import Iterable

import structlog

from .archive import ArchiveExpander
from .core import (
    IngestionSummary,
    MatchScorer,
    MatchSummary,
    PipelineObserver,
    ProfileExtractor,
    ProfileSet,
    filter_profiles,
)
from .llm import SleepFn
from .pipeline import IngestionRun
from .schemas import CandidateProfile, FilterSpec, JobDescription, SourceDocument


class AnalyzerSession:
    """Owns the profile set and the runs that mutate it.

    Ingestion runs and match passes hold ``_lock`` for their whole duration, so
    they never interleave writes. Starting an ingestion while another one is in
    flight cancels the older run (including any retry or pacing sleep) before
    the profile set is cleared for the new one.
    """

    def __init__(
        self,
        *,
        extractor: ProfileExtractor,
        scorer: MatchScorer,
        expander: ArchiveExpander | None = None,
        pacing_delay: float = 1.0,
        sleep: SleepFn | None = None,
    ) -> None:
        self._extractor = extractor
        self._scorer = scorer
        self._expander = expander or ArchiveExpander()
        self._pacing_delay = pacing_delay
        self._sleep = sleep
        self._profiles = ProfileSet()
        self._job = JobDescription()
        self._lock = asyncio.Lock()
        self._active_task: asyncio.Task[IngestionSummary] | None = None
        self._superseded: set[asyncio.Task[IngestionSummary]] = set()
        self._logger = structlog.get_logger(__name__)

    @property
    def profiles(self) -> ProfileSet:
        return self._profiles

    @property
    def job_description(self) -> JobDescription:
        return self._job

    @job_description.setter
    def job_description(self, value: str | JobDescription) -> None:
        self._job = value if isinstance(value, JobDescription) else JobDescription(text=value)

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def ingest(
        self,
        files: Iterable[SourceDocument],
        observer: PipelineObserver | None = None,
    ) -> IngestionSummary:
        """Replace the profile set with the profiles extracted from ``files``."""
        await self._supersede_active()
        run = IngestionRun(
            extractor=self._extractor,
            profiles=self._profiles,
            expander=self._expander,
            observer=observer,
            pacing_delay=self._pacing_delay,
            sleep=self._sleep,
        )
        task = asyncio.create_task(self._run_ingestion(run, list(files)))
        self._active_task = task
        try:
            return await task
        except asyncio.CancelledError:
            if task not in self._superseded:
                raise
            self._superseded.discard(task)
            return run.mark_superseded()
        finally:
            if self._active_task is task:
                self._active_task = None

    async def match(
        self,
        observer: PipelineObserver | None = None,
        *,
        job_description: str | JobDescription | None = None,
    ) -> MatchSummary:
        """Score every profile against the current job description."""
        if job_description is not None:
            self.job_description = job_description
        async with self._lock:
            return await self._scorer.score(self._profiles, self._job, observer)

    def filter(self, spec: FilterSpec | None = None, **criteria: str) -> list[CandidateProfile]:
        """Filter a snapshot of the profile set; keyword criteria build the FilterSpec."""
        if spec is None:
            spec = FilterSpec(**criteria)
        return filter_profiles(self._profiles.snapshot(), spec)

    def document(self, profile_id: str) -> SourceDocument:
        profile = self._profiles.get(profile_id)
        if profile is None or profile.source is None:
            raise KeyError(f"No source document for profile {profile_id!r}")
        return profile.source

    async def close(self) -> None:
        """Cancel any in-flight ingestion and release every owned document."""
        await self._supersede_active()
        async with self._lock:
            self._profiles.clear()

    async def _run_ingestion(self, run: IngestionRun, files: list[SourceDocument]) -> IngestionSummary:
        async with self._lock:
            self._profiles.clear()
            return await run.execute(files)

    async def _supersede_active(self) -> None:
        task = self._active_task
        if task is None or task.done():
            return
        self._logger.warning("session.superseding_ingestion")
        self._superseded.add(task)
        task.cancel()
        await asyncio.wait({task})


__all__ = ["AnalyzerSession"]
