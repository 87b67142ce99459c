"""Pydantic models for caller-supplied transcription options.

Field names are snake_case; camelCase aliases (``returnTimestamps``,
``chunkLengthS``, ``generateKwargs``...) are accepted too, so option maps
produced by JavaScript clients validate unchanged.

Every field is optional. ``None`` means "let the engine decide": nothing in
this module supplies a generation default.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from murmur._types import Task, TimestampGranularity

_MODEL_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="forbid",
    frozen=True,
)


class GenerationOptions(BaseModel):
    """Decoding-time controls forwarded to the engine as ``generate_kwargs``."""

    model_config = _MODEL_CONFIG

    max_new_tokens: int | None = Field(default=None, ge=1)
    num_beams: int | None = Field(
        default=None,
        ge=1,
        description="1 = greedy search (fastest); higher is slower and more accurate.",
    )
    condition_on_prev_tokens: bool | None = None
    compression_ratio_threshold: float | None = None
    temperature: float | list[float] | None = Field(
        default=None,
        description="Single temperature or a fallback schedule.",
    )
    logprob_threshold: float | None = None
    no_speech_threshold: float | None = None

    @field_validator("temperature")
    @classmethod
    def _non_negative_temperature(
        cls, value: float | list[float] | None
    ) -> float | list[float] | None:
        values = value if isinstance(value, list) else [value]
        if any(v is not None and v < 0 for v in values):
            msg = "temperature must be >= 0"
            raise ValueError(msg)
        return value


class TranscriptionRequest(BaseModel):
    """Options for a single ``transcribe`` call."""

    model_config = _MODEL_CONFIG

    return_timestamps: TimestampGranularity = TimestampGranularity.NONE
    language: str | None = Field(
        default=None,
        description="ISO 639-1 code or full language name; None = auto-detect.",
    )
    task: Task | None = None
    chunk_length_s: float | None = Field(
        default=None,
        gt=0,
        description="Long-form chunk length; recommended for audio over 30s.",
    )
    stride_length_s: float | None = Field(
        default=None,
        ge=0,
        description="Overlap between chunks. Ignored without chunk_length_s.",
    )
    generate_kwargs: GenerationOptions | None = None

    @field_validator("return_timestamps", mode="before")
    @classmethod
    def _coerce_timestamps(cls, value: Any) -> Any:
        # Wire form is True/False/"word".
        if value is None or value is False:
            return TimestampGranularity.NONE
        if value is True:
            return TimestampGranularity.SENTENCE
        return value

    @field_validator("language")
    @classmethod
    def _blank_language_is_auto(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value


def coerce_request(options: TranscriptionRequest | dict[str, Any] | None) -> TranscriptionRequest:
    """Accept a ready request, a plain option mapping, or nothing."""
    if options is None:
        return TranscriptionRequest()
    if isinstance(options, TranscriptionRequest):
        return options
    return TranscriptionRequest.model_validate(options)
