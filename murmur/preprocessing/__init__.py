"""Audio normalization pipeline.

Turns audio from any source into what the recognition model consumes.
Pipeline: Validate -> Decode -> Downmix -> Resample -> mono float32 16kHz.
"""

from __future__ import annotations

from murmur.preprocessing.pipeline import AudioNormalizer
from murmur.preprocessing.stages import AudioStage
from murmur.preprocessing.validation import AudioValidator

__all__ = ["AudioNormalizer", "AudioStage", "AudioValidator"]
