"""Ingestion run orchestration."""

from __future__ import annotations

import asyncio
import uuid
from typing import Iterable

import structlog

from .archive import ArchiveExpander
from .core import (
    Deduplicator,
    ExtractionFailure,
    IngestionSummary,
    PipelineObserver,
    ProfileExtractor,
    ProfileSet,
    RunState,
)
from .core.events import now
from .errors import ArchiveError
from .llm import SleepFn
from .schemas import SourceDocument

SUPERSEDED_MESSAGE = "Ingestion run was superseded by a newer run."


class IngestionRun:
    """One ingestion run over a batch of uploaded files.

    States: ``IDLE -> PREPARING -> EXTRACTING -> COMPLETED | ABORTED``.
    Documents are extracted strictly one after another with a fixed pause
    between calls, and the first failing document aborts the run.
    """

    def __init__(
        self,
        *,
        extractor: ProfileExtractor,
        profiles: ProfileSet,
        expander: ArchiveExpander | None = None,
        deduplicator: Deduplicator | None = None,
        observer: PipelineObserver | None = None,
        pacing_delay: float = 1.0,
        sleep: SleepFn | None = None,
    ) -> None:
        self._extractor = extractor
        self._profiles = profiles
        self._expander = expander or ArchiveExpander()
        self._dedup = deduplicator or Deduplicator()
        self._observer = observer or PipelineObserver()
        self._pacing_delay = pacing_delay
        self._sleep = sleep or asyncio.sleep
        self.run_id = uuid.uuid4().hex[:12]
        self._logger = structlog.get_logger(__name__).bind(run_id=self.run_id)
        self._summary = IngestionSummary(state=RunState.IDLE)
        self._extracted = 0

    @property
    def state(self) -> RunState:
        return self._summary.state

    def summary(self) -> IngestionSummary:
        return self._summary

    async def execute(self, files: Iterable[SourceDocument]) -> IngestionSummary:
        if self.state is not RunState.IDLE:
            raise RuntimeError(f"Ingestion run {self.run_id} already started")
        self._summary.started_at = now()
        try:
            return await self._execute(list(files))
        except asyncio.CancelledError:
            self.mark_superseded()
            raise

    def mark_superseded(self) -> IngestionSummary:
        """Abort a run cancelled in flight (or before it ever started)."""
        if self.state not in (RunState.COMPLETED, RunState.ABORTED):
            self._abort(SUPERSEDED_MESSAGE, notify=False)
        return self._summary

    async def _execute(self, files: list[SourceDocument]) -> IngestionSummary:
        self._transition(RunState.PREPARING)
        try:
            documents = await self._expander.expand(files)
        except ArchiveError as exc:
            return self._abort(str(exc))

        total = len(documents)
        self._summary.total_documents = total
        self._transition(RunState.EXTRACTING)
        self._logger.info("ingestion.started", files=len(files), documents=total)

        for index, document in enumerate(documents, start=1):
            self._observer.on_progress("ingest", index, total)
            self._logger.debug("ingestion.progress", processed=index, total=total, document=document.name)

            result = await self._extractor.extract(document)
            self._summary.processed = index
            if isinstance(result, ExtractionFailure):
                return self._abort(result.message)

            self._extracted += 1
            if self._dedup.is_new(result):
                self._profiles.append(result)
                self._summary.unique_count += 1
                self._observer.on_profile_added(result)
            else:
                result.release_source()
                self._logger.info("ingestion.duplicate", document=document.name, profile_id=result.id)
            self._summary.duplicate_count = self._extracted - self._summary.unique_count

            if index < total:
                await self._sleep(self._pacing_delay)

        self._summary.finished_at = now()
        self._transition(RunState.COMPLETED)
        self._logger.info(
            "ingestion.completed",
            unique=self._summary.unique_count,
            duplicates=self._summary.duplicate_count,
        )
        self._observer.on_completed(self._summary)
        return self._summary

    def _transition(self, state: RunState) -> None:
        self._summary.state = state
        self._observer.on_status("ingest", state)

    def _abort(self, message: str, *, notify: bool = True) -> IngestionSummary:
        self._summary.error = message
        self._summary.finished_at = now()
        self._summary.state = RunState.ABORTED
        self._logger.error("ingestion.aborted", error=message, processed=self._summary.processed)
        if notify:
            self._observer.on_error(message)
            self._observer.on_status("ingest", RunState.ABORTED)
        return self._summary


__all__ = ["IngestionRun", "SUPERSEDED_MESSAGE"]
