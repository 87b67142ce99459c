"""Core types for murmur.

This module defines enums, dataclasses, and type aliases used by all runtime
components. Changes here affect the entire system.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import numpy as np


class ModelState(Enum):
    """State of the process-wide recognition engine.

    Valid transitions:
        UNLOADED -> LOADING (load requested)
        LOADING -> READY (load succeeded)
        LOADING -> FAILED (load raised)
        FAILED -> LOADING (explicit caller re-trigger, never automatic)
    """

    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class TimestampGranularity(Enum):
    """Timestamp granularity requested from the engine."""

    NONE = "none"
    SENTENCE = "sentence"
    WORD = "word"


class Task(Enum):
    """Recognition task.

    TRANSLATE always produces English; ``language`` then names the source.
    """

    TRANSCRIBE = "transcribe"
    TRANSLATE = "translate"


class LogLevel(Enum):
    """Severity of a journal entry."""

    INFO = "info"
    WARN = "warn"
    ERROR = "error"


@dataclass(frozen=True, slots=True, eq=False)
class AudioBuffer:
    """Per-channel float32 PCM at a given sample rate.

    Stages never write into ``channels``; each one returns a new buffer.
    """

    channels: tuple[np.ndarray, ...]
    sample_rate: int

    def __post_init__(self) -> None:
        if not self.channels:
            msg = "AudioBuffer needs at least one channel"
            raise ValueError(msg)
        if self.sample_rate <= 0:
            msg = f"sample_rate must be positive, got {self.sample_rate}"
            raise ValueError(msg)
        length = len(self.channels[0])
        if any(len(ch) != length for ch in self.channels[1:]):
            msg = "All channels must have the same number of samples"
            raise ValueError(msg)

    @property
    def num_channels(self) -> int:
        return len(self.channels)

    @property
    def num_samples(self) -> int:
        return len(self.channels[0])

    @property
    def duration_s(self) -> float:
        return self.num_samples / self.sample_rate

    @property
    def is_mono(self) -> bool:
        return self.num_channels == 1

    @property
    def samples(self) -> np.ndarray:
        """The single channel of a mono buffer.

        Raises:
            ValueError: If the buffer has more than one channel.
        """
        if not self.is_mono:
            msg = f"Buffer has {self.num_channels} channels; downmix first"
            raise ValueError(msg)
        return self.channels[0]


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of the pre-decode audio gate."""

    valid: bool
    reason: str | None = None
    size_bytes: int | None = None
    duration_s: float | None = None

    def raise_for_status(self) -> None:
        """Raise ValidationError if the audio was rejected."""
        if not self.valid:
            from murmur.exceptions import ValidationError

            raise ValidationError(self.reason or "Audio validation failed")


@dataclass(frozen=True, slots=True)
class TimestampChunk:
    """One time-aligned piece of the transcript (sentence or word)."""

    start: float
    end: float | None
    text: str


@dataclass(frozen=True, slots=True)
class TranscriptionResult:
    """Trimmed transcript plus chunks when timestamps were requested."""

    text: str
    chunks: tuple[TimestampChunk, ...] | None = None


@dataclass(frozen=True, slots=True)
class PerformanceMetrics:
    """Diagnostics for the most recent transcription.

    ``audio_duration_s`` comes from the decoded sample count when available
    (``duration_source == "decoded"``), otherwise from the byte-size estimate.
    """

    processing_time_s: float
    audio_duration_s: float
    realtime_factor: float
    device: str
    model_id: str
    estimated_duration_s: float | None = None
    duration_source: str = "decoded"


@dataclass(frozen=True, slots=True)
class LogEntry:
    """Single entry of the transcription journal."""

    timestamp: float
    level: LogLevel
    message: str
