"""Typer CLI entrypoint for the resume analyzer."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, List, Optional

import pendulum
import typer
from pydantic import ValidationError

from . import __version__
from .config import ConfigManager
from .container import create_container
from .core import IngestionSummary, MatchSummary, PipelineObserver, RunState
from .core.events import Stage
from .errors import ConfigurationError
from .logging import configure_logging
from .schemas import FilterSpec, SourceDocument
from .session import AnalyzerSession

app = typer.Typer(help="Analyze resumes, remove duplicates and rank candidates for a job.")


class EchoObserver(PipelineObserver):
    """Report progress on stderr, keeping stdout for the JSON result."""

    def on_status(self, stage: Stage, state: RunState) -> None:
        if stage == "ingest" and state is RunState.PREPARING:
            typer.echo("Preparing files...", err=True)

    def on_progress(self, stage: Stage, processed: int, total: int) -> None:
        if stage == "ingest":
            typer.echo(f"Analyzing {processed}/{total}...", err=True)
        else:
            typer.echo(f"Matching {processed}/{total} candidates...", err=True)

    def on_completed(self, summary: IngestionSummary | MatchSummary) -> None:
        typer.echo(summary.message, err=True)

    def on_error(self, message: str) -> None:
        typer.echo(message, err=True)


@app.command()
def analyze(
    files: List[Path] = typer.Argument(
        ...,
        exists=True,
        readable=True,
        dir_okay=False,
        help="Resume files (PDF, Word, Excel) or ZIP archives.",
    ),
    job_description: Optional[str] = typer.Option(
        None, "--job-description", "-j", help="Job description to score candidates against."
    ),
    job_file: Optional[Path] = typer.Option(
        None, exists=True, readable=True, dir_okay=False, help="Read the job description from a file."
    ),
    filter_job: str = typer.Option("", help="Keep candidates whose applied-for position contains this text."),
    filter_governorate: str = typer.Option("", help="Keep candidates whose governorate contains this text."),
    filter_age: str = typer.Option("", help="Exact age (27) or range (25-30, 30-, -40)."),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    language: Optional[str] = typer.Option(None, help="Extraction prompt language (en or ar)."),
    log_level: str = typer.Option("WARNING", help="Log level for structured logging."),
) -> None:
    """Extract profiles from FILES, optionally match them, and print JSON."""
    configure_logging(log_level)

    overrides: dict[str, Any] = {}
    if language:
        overrides["pipeline"] = {"language": language}
    try:
        app_config = ConfigManager().load(config, overrides=overrides)
    except (ValueError, ValidationError) as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc

    job_text = job_description
    if job_file is not None:
        job_text = job_file.read_text(encoding="utf-8")

    try:
        session = create_container(settings=app_config).session()
    except ConfigurationError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc

    documents = [SourceDocument.from_path(path) for path in files]
    spec = FilterSpec(job=filter_job, governorate=filter_governorate, age=filter_age)

    payload, ok = asyncio.run(_run(session, documents, job_text, spec, EchoObserver()))
    typer.echo(json.dumps(payload, ensure_ascii=False))
    if not ok:
        raise typer.Exit(code=1)


async def _run(
    session: AnalyzerSession,
    documents: list[SourceDocument],
    job_text: str | None,
    spec: FilterSpec,
    observer: PipelineObserver,
) -> tuple[dict[str, Any], bool]:
    try:
        ingestion = await session.ingest(documents, observer)
        payload: dict[str, Any] = {
            "metadata": {
                "app_version": __version__,
                "timestamp": pendulum.now().to_iso8601_string(),
            },
            "ingestion": ingestion.to_dict(),
        }
        ok = ingestion.succeeded
        if job_text is not None:
            match = await session.match(observer, job_description=job_text)
            payload["match"] = match.to_dict()
            ok = ok and match.succeeded
        profiles = session.filter(spec)
        payload["count"] = len(profiles)
        payload["profiles"] = [
            {**profile.to_public_dict(), "whatsapp": profile.whatsapp_number} for profile in profiles
        ]
        return payload, ok
    finally:
        await session.close()


def main() -> None:
    app()


if __name__ == "__main__":
    main()
