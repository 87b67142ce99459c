"""Shared test helpers: synthetic audio and fake engines.

Usage:
    from tests.helpers import FakeEngine, FakeLoader, make_sine, make_wav_bytes
"""

from __future__ import annotations

import asyncio
import io
from typing import Any

import numpy as np
import soundfile as sf

from murmur.engine.interface import ASREngine, EngineLoader, EngineOutput

SAMPLE_RATE = 16000


def make_sine(
    sample_rate: int = SAMPLE_RATE,
    duration: float = 1.0,
    frequency: float = 440.0,
    amplitude: float = 0.5,
) -> np.ndarray:
    """Generate a float32 sine tone."""
    n_samples = int(round(sample_rate * duration))
    t = np.arange(n_samples, dtype=np.float64) / sample_rate
    return (amplitude * np.sin(2 * np.pi * frequency * t)).astype(np.float32)


def make_wav_bytes(
    samples: np.ndarray,
    sample_rate: int = SAMPLE_RATE,
    subtype: str = "PCM_16",
) -> bytes:
    """Encode samples shaped (frames,) or (frames, channels) as WAV bytes."""
    buffer = io.BytesIO()
    sf.write(buffer, samples, sample_rate, format="WAV", subtype=subtype)
    return buffer.getvalue()


def make_tone_wav(duration: float = 1.0, sample_rate: int = SAMPLE_RATE, channels: int = 1) -> bytes:
    """WAV bytes of a 440Hz tone, optionally duplicated across channels."""
    tone = make_sine(sample_rate=sample_rate, duration=duration)
    if channels > 1:
        tone = np.stack([tone] * channels, axis=1)
    return make_wav_bytes(tone, sample_rate)


class FakeEngine(ASREngine):
    """Engine that reads the referenced WAV and returns a canned transcript.

    With word timestamps requested, one chunk per word is spread evenly over
    the real duration of the referenced audio.
    """

    def __init__(
        self,
        text: str = " hello world from murmur ",
        model_id: str = "fake/whisper",
        device: str = "cpu",
        error: Exception | None = None,
    ) -> None:
        self._text = text
        self._model_id = model_id
        self._device = device
        self._error = error
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.seen_audio: list[tuple[np.ndarray, int]] = []

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def device(self) -> str:
        return self._device

    async def __call__(self, audio_reference: str, parameters: dict[str, Any]) -> EngineOutput:
        self.calls.append((audio_reference, dict(parameters)))
        samples, sample_rate = sf.read(audio_reference, dtype="float32")
        self.seen_audio.append((samples, sample_rate))
        if self._error is not None:
            raise self._error

        timestamps = parameters.get("return_timestamps")
        if not timestamps:
            return {"text": self._text}

        duration = len(samples) / sample_rate
        words = self._text.split()
        step = duration / len(words)
        chunks = [
            {"timestamp": (round(i * step, 2), round((i + 1) * step, 2)), "text": f" {word}"}
            for i, word in enumerate(words)
        ]
        return {"text": self._text, "chunks": chunks}


class FakeLoader(EngineLoader):
    """Loader that counts calls and optionally blocks until released."""

    def __init__(
        self,
        engine: ASREngine | None = None,
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.engine = engine or FakeEngine()
        self.error = error
        self.gate = gate
        self.load_calls = 0

    async def load(self, model_id: str, device: str, dtype: str) -> ASREngine:
        self.load_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.engine
