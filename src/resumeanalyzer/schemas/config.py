"""Pydantic configuration schema for YAML settings."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

PromptLanguage = Literal["en", "ar"]


class InferenceConfig(BaseModel):
    model: str = "gemini-2.5-flash"
    api_key: str | None = None
    api_key_env: list[str] = Field(default_factory=lambda: ["GEMINI_API_KEY", "API_KEY"])

    model_config = ConfigDict(extra="forbid")


class RetryConfig(BaseModel):
    attempts: int = Field(default=4, ge=1)
    initial_delay: float = Field(default=2.0, ge=0.0)
    max_jitter: float = Field(default=1.0, ge=0.0)

    model_config = ConfigDict(extra="forbid")


class PipelineConfig(BaseModel):
    pacing_delay: float = Field(default=1.0, ge=0.0)
    language: PromptLanguage = "en"

    model_config = ConfigDict(extra="forbid")

    @field_validator("language", mode="before")
    @classmethod
    def lowercase_language(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value


class AppConfig(BaseModel):
    inference: InferenceConfig = Field(default_factory=InferenceConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)

    model_config = ConfigDict(extra="forbid")

    def to_settings(self) -> dict[str, Any]:
        return self.model_dump(mode="python")


def load_config(raw: Any) -> AppConfig:
    if raw is None:
        return AppConfig()
    if not isinstance(raw, dict):
        raise ValidationError.from_exception_data(
            "AppConfig",
            [{"type": "dict_type", "loc": ("config",), "input": raw}],
        )
    return AppConfig.model_validate(raw)
