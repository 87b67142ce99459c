"""DownmixStage — reduces multi-channel audio to mono.

Channels are summed and divided by sqrt(N) rather than N. The sum of N
uncorrelated channels grows in power by N, so the sqrt(N) divisor keeps
perceived loudness roughly constant instead of attenuating by channel count.
Correlated content (identical channels) comes out louder by sqrt(N).
"""

from __future__ import annotations

import math

import numpy as np

from murmur._types import AudioBuffer
from murmur.preprocessing.stages import AudioStage


def downmix(channels: tuple[np.ndarray, ...] | list[np.ndarray]) -> np.ndarray:
    """Mix per-channel samples into one float32 channel.

    A single channel is returned as-is.
    """
    if len(channels) == 1:
        return channels[0]

    stacked = np.stack(channels).astype(np.float64)
    mono = stacked.sum(axis=0) / math.sqrt(len(channels))
    return mono.astype(np.float32)


class DownmixStage(AudioStage):
    """Energy-preserving downmix to a single channel."""

    @property
    def name(self) -> str:
        return "downmix"

    def process(self, audio: AudioBuffer) -> AudioBuffer:
        if audio.is_mono:
            return audio
        return AudioBuffer(channels=(downmix(audio.channels),), sample_rate=audio.sample_rate)
