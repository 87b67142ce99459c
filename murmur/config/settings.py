"""Centralized configuration via pydantic-settings.

All ``MURMUR_*`` environment variables are read, validated, and exposed here.
Logging env vars (``MURMUR_LOG_FORMAT``, ``MURMUR_LOG_LEVEL``) are intentionally
excluded — they stay in ``murmur.logging`` for bootstrap-safety.

Usage::

    from murmur.config.settings import get_settings

    settings = get_settings()
    print(settings.validation.max_file_size_mb)  # int, validated
    print(settings.model.model_id)               # str

``.env`` files in the working directory are loaded automatically.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from murmur._audio_constants import (
    DEFAULT_MAX_DURATION_S,
    DEFAULT_MAX_FILE_SIZE_MB,
    STT_SAMPLE_RATE,
)

DEFAULT_MODEL_ID = "openai/whisper-small"


class ValidationSettings(BaseSettings):
    """Pre-decode audio gate."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    max_file_size_mb: float = Field(
        default=DEFAULT_MAX_FILE_SIZE_MB, gt=0, le=4096, validation_alias="MURMUR_MAX_FILE_SIZE_MB"
    )
    max_duration_s: float = Field(
        default=DEFAULT_MAX_DURATION_S, gt=0, le=86_400, validation_alias="MURMUR_MAX_DURATION_S"
    )
    enable_memory_check: bool = Field(
        default=True, validation_alias="MURMUR_ENABLE_MEMORY_CHECK"
    )


class ModelSettings(BaseSettings):
    """Recognition engine selection and load behaviour."""

    model_config = SettingsConfigDict(
        extra="ignore", populate_by_name=True, protected_namespaces=()
    )

    model_id: str = Field(default=DEFAULT_MODEL_ID, validation_alias="MURMUR_MODEL_ID")
    device: str = Field(default="auto", validation_alias="MURMUR_DEVICE")
    dtype: str = Field(default="auto", validation_alias="MURMUR_DTYPE")
    load_timeout_s: float = Field(
        default=60.0, gt=0, le=3600, validation_alias="MURMUR_LOAD_TIMEOUT_S"
    )

    @field_validator("device")
    @classmethod
    def _validate_device(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized in ("auto", "cpu", "cuda", "mps") or normalized.startswith("cuda:"):
            return normalized
        msg = f"device must be auto, cpu, cuda, cuda:N or mps, got {value!r}"
        raise ValueError(msg)


class InferenceSettings(BaseSettings):
    """Orchestrator tuning."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    target_sample_rate: int = Field(
        default=STT_SAMPLE_RATE, ge=8000, le=48000, validation_alias="MURMUR_TARGET_SAMPLE_RATE"
    )
    max_concurrent: int = Field(
        default=1, ge=1, le=16, validation_alias="MURMUR_MAX_CONCURRENT_INFERENCE"
    )


class MurmurSettings(BaseSettings):
    """Root settings — aggregates all subsystem settings.

    Loads ``.env`` from the current directory when present.
    """

    model_config = SettingsConfigDict(
        env_prefix="MURMUR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    validation: ValidationSettings = Field(default_factory=ValidationSettings)
    model: ModelSettings = Field(default_factory=ModelSettings)
    inference: InferenceSettings = Field(default_factory=InferenceSettings)


@lru_cache(maxsize=1)
def get_settings() -> MurmurSettings:
    """Return the singleton ``MurmurSettings`` instance.

    The result is cached — subsequent calls return the same object.
    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    return MurmurSettings()
