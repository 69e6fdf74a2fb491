"""Error taxonomy for the resume analysis pipeline."""

from __future__ import annotations

RATE_LIMIT_SUFFIX = " (API rate limit exceeded. The process was stopped.)"


class AnalyzerError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(AnalyzerError):
    """Raised when the inference capability cannot be initialised."""

    DEFAULT_MESSAGE = (
        "AI Service could not be initialized. Please ensure the API key is "
        "configured correctly in the environment."
    )

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.DEFAULT_MESSAGE)


class InferenceError(AnalyzerError):
    """Terminal failure reported by the inference capability."""


class RetriesExhaustedError(InferenceError):
    """Raised when every attempt of a retried call hit a rate limit."""

    def __init__(self, attempts: int) -> None:
        super().__init__(f"API call failed after {attempts} attempts (retries exhausted)")
        self.attempts = attempts


class MalformedResponseError(InferenceError):
    """Structured response could not be parsed or misses required fields."""


class ArchiveError(AnalyzerError):
    """Raised when an archive container cannot be opened."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Could not open archive {name!r}: {reason}")
        self.name = name


class DocumentEncodingError(AnalyzerError):
    """Raised when a document cannot be prepared for transmission."""


class DocumentReleasedError(AnalyzerError):
    """Raised when the bytes of a released source document are requested."""


class MatchValidationError(AnalyzerError):
    """Raised when a match pass is requested without its preconditions."""

    DEFAULT_MESSAGE = "Please enter a job description and ensure resumes are analyzed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.DEFAULT_MESSAGE)


__all__ = [
    "AnalyzerError",
    "ArchiveError",
    "ConfigurationError",
    "DocumentEncodingError",
    "DocumentReleasedError",
    "InferenceError",
    "MalformedResponseError",
    "MatchValidationError",
    "RATE_LIMIT_SUFFIX",
    "RetriesExhaustedError",
]
