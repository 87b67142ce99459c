"""Parameter building, engine invocation and result normalization."""

from __future__ import annotations

from murmur.transcription.orchestrator import TranscriptionOrchestrator
from murmur.transcription.parameters import build_engine_parameters, normalize_language

__all__ = ["TranscriptionOrchestrator", "build_engine_parameters", "normalize_language"]
