"""Resume document to candidate profile extraction."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Callable

import structlog
from pydantic import ValidationError

from ..errors import RATE_LIMIT_SUFFIX, DocumentEncodingError, MalformedResponseError
from ..llm import DEFAULT_MODEL, ContentPart, InferenceClient, InferenceRequest, is_rate_limit_failure
from ..schemas import CandidateProfile, ExtractedProfile, SourceDocument
from ..schemas.config import PromptLanguage
from ..schemas.document import media_type_for

PROFILE_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "name": {"type": "STRING", "description": "Candidate's full name"},
        "age": {"type": "NUMBER", "description": "Candidate's age"},
        "governorate": {
            "type": "STRING",
            "description": "The governorate or city where the candidate resides",
        },
        "email": {"type": "STRING", "description": "Candidate's email address"},
        "phone": {"type": "STRING", "description": "Candidate's phone number"},
        "appliedFor": {
            "type": "STRING",
            "description": "The job position applied for, if mentioned",
        },
        "skills": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "A list of the candidate's key technical and soft skills",
        },
        "experienceSummary": {
            "type": "STRING",
            "description": "A brief 2-3 sentence summary of the candidate's professional experience",
        },
    },
    "required": ["name", "skills", "experienceSummary"],
}

EXTRACTION_PROMPTS: dict[str, str] = {
    "en": "Analyze this resume and extract the following information. Respond in English.",
    "ar": "حلل هذه السيرة الذاتية واستخرج المعلومات التالية. أجب باللغة العربية.",
}


@dataclass(slots=True)
class ExtractionFailure:
    """Explicit failure for one document; the orchestrator decides what follows."""

    document_name: str
    error: BaseException
    rate_limited: bool = False

    @property
    def message(self) -> str:
        text = f"An error occurred while analyzing: {self.document_name}"
        return text + RATE_LIMIT_SUFFIX if self.rate_limited else text


ExtractionResult = CandidateProfile | ExtractionFailure


def new_profile_id(document: SourceDocument) -> str:
    return f"{document.name}-{uuid.uuid4().hex}"


class ProfileExtractor:
    """Turn one resume document into a :class:`CandidateProfile`."""

    def __init__(
        self,
        client: InferenceClient,
        *,
        model: str = DEFAULT_MODEL,
        language: PromptLanguage = "en",
        id_factory: Callable[[SourceDocument], str] = new_profile_id,
    ) -> None:
        self._client = client
        self._model = model
        self._prompt = EXTRACTION_PROMPTS[language]
        self._id_factory = id_factory
        self._logger = structlog.get_logger(__name__)

    async def extract(self, document: SourceDocument) -> ExtractionResult:
        """Extract a profile; never raises for per-document failures."""
        try:
            request = self.build_request(document)
            payload = await self._client.generate_json(request)
            extracted = ExtractedProfile.model_validate(payload)
        except ValidationError as exc:
            return self._failure(document, MalformedResponseError(str(exc)))
        except Exception as exc:  # noqa: BLE001
            return self._failure(document, exc)

        profile = CandidateProfile.from_extraction(
            extracted,
            profile_id=self._id_factory(document),
            source=document,
        )
        self._logger.info("extraction.succeeded", document=document.name, profile_id=profile.id)
        return profile

    def build_request(self, document: SourceDocument) -> InferenceRequest:
        media_type = document.media_type or media_type_for(document.name)
        if not media_type:
            raise DocumentEncodingError(f"Unknown media type for {document.name!r}")
        data = document.read()
        if not data:
            raise DocumentEncodingError(f"Document {document.name!r} is empty")
        return InferenceRequest(
            parts=(ContentPart.from_bytes(data, media_type), ContentPart.from_text(self._prompt)),
            response_schema=PROFILE_RESPONSE_SCHEMA,
            model=self._model,
        )

    def _failure(self, document: SourceDocument, exc: BaseException) -> ExtractionFailure:
        rate_limited = is_rate_limit_failure(exc)
        self._logger.error(
            "extraction.failed",
            document=document.name,
            error=str(exc),
            error_type=type(exc).__name__,
            rate_limited=rate_limited,
        )
        return ExtractionFailure(document_name=document.name, error=exc, rate_limited=rate_limited)


__all__ = [
    "EXTRACTION_PROMPTS",
    "ExtractionFailure",
    "ExtractionResult",
    "PROFILE_RESPONSE_SCHEMA",
    "ProfileExtractor",
    "new_profile_id",
]
