"""Dependency injection container for the resume analyzer."""

from __future__ import annotations

from typing import Any

from dependency_injector import containers, providers

from .archive import ArchiveExpander
from .core import MatchScorer, MatchScorerConfig, ProfileExtractor
from .llm import GeminiBackend, InferenceBackend, InferenceClient, RetryPolicy, SleepFn
from .schemas.config import AppConfig, load_config
from .session import AnalyzerSession


class AnalyzerContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration()

    inference_backend = providers.Singleton(
        GeminiBackend,
        api_key=config.inference.api_key,
        model=config.inference.model,
    )

    retry_policy = providers.Singleton(
        RetryPolicy,
        attempts=config.retry.attempts,
        initial_delay=config.retry.initial_delay,
        max_jitter=config.retry.max_jitter,
    )

    inference_client = providers.Singleton(
        InferenceClient,
        backend=inference_backend,
        policy=retry_policy,
    )

    profile_extractor = providers.Singleton(
        ProfileExtractor,
        client=inference_client,
        model=config.inference.model,
        language=config.pipeline.language,
    )

    scorer_config = providers.Singleton(
        MatchScorerConfig,
        pacing_delay=config.pipeline.pacing_delay,
        model=config.inference.model,
    )

    match_scorer = providers.Singleton(
        MatchScorer,
        client=inference_client,
        config=scorer_config,
    )

    archive_expander = providers.Singleton(ArchiveExpander)

    session = providers.Factory(
        AnalyzerSession,
        extractor=profile_extractor,
        scorer=match_scorer,
        expander=archive_expander,
        pacing_delay=config.pipeline.pacing_delay,
    )


def create_container(
    *,
    settings: AppConfig | dict[str, Any] | None = None,
    backend: InferenceBackend | None = None,
    sleep: SleepFn | None = None,
) -> AnalyzerContainer:
    """Instantiate the container from validated settings.

    ``backend`` replaces the Gemini backend and ``sleep`` replaces
    ``asyncio.sleep`` for retry backoff and pacing delays.
    """
    app_config = settings if isinstance(settings, AppConfig) else load_config(settings or {})

    container = AnalyzerContainer()
    container.config.from_dict(app_config.to_settings())

    if backend is not None:
        container.inference_backend.override(providers.Object(backend))

    if sleep is not None:
        container.inference_client.add_kwargs(sleep=sleep)
        container.match_scorer.add_kwargs(sleep=sleep)
        container.session.add_kwargs(sleep=sleep)

    return container


__all__ = ["AnalyzerContainer", "create_container"]
