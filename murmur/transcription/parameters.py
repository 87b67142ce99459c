"""Builds the engine parameter map from a TranscriptionRequest.

Only options the caller set are emitted. Generation parameters are copied
1:1 and never defaulted here: defaults belong to the engine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from murmur._types import TimestampGranularity

if TYPE_CHECKING:
    from murmur.models.requests import TranscriptionRequest

LANGUAGE_CODES: dict[str, str] = {
    "korean": "ko",
    "english": "en",
    "japanese": "ja",
    "chinese": "zh",
    "spanish": "es",
    "french": "fr",
    "german": "de",
    "russian": "ru",
    "portuguese": "pt",
    "italian": "it",
    "dutch": "nl",
    "polish": "pl",
    "turkish": "tr",
    "arabic": "ar",
    "hindi": "hi",
    "thai": "th",
    "vietnamese": "vi",
    "indonesian": "id",
}


def normalize_language(language: str) -> str:
    """Map a full language name to its ISO 639-1 code.

    Matching is case-insensitive and ignores surrounding whitespace. Anything
    outside the table (already a code, or an unknown name) passes through
    lowercased and trimmed.
    """
    normalized = language.strip().lower()
    return LANGUAGE_CODES.get(normalized, normalized)


def build_engine_parameters(request: TranscriptionRequest) -> dict[str, Any]:
    """Assemble the parameter map for a single engine call."""
    params: dict[str, Any] = {}

    if request.return_timestamps is TimestampGranularity.WORD:
        params["return_timestamps"] = "word"
    else:
        params["return_timestamps"] = request.return_timestamps is TimestampGranularity.SENTENCE

    if request.language:
        params["language"] = normalize_language(request.language)

    if request.task is not None:
        params["task"] = request.task.value

    if request.chunk_length_s is not None:
        params["chunk_length_s"] = request.chunk_length_s
        if request.stride_length_s is not None:
            params["stride_length_s"] = request.stride_length_s

    if request.generate_kwargs is not None:
        generate = request.generate_kwargs.model_dump(exclude_none=True, by_alias=False)
        if generate:
            params["generate_kwargs"] = generate

    return params
