"""ResampleStage — converts mono audio to the target sample rate.

Linear interpolation between neighbouring samples. O(n) and deterministic,
with bounded error for speech-band content. This is not a bandlimited
resampler: downsampling applies no anti-aliasing filter.
Pipeline contract guarantees mono input; no multi-channel handling here.
"""

from __future__ import annotations

import numpy as np

from murmur._audio_constants import STT_SAMPLE_RATE
from murmur._types import AudioBuffer
from murmur.preprocessing.stages import AudioStage


def resample_linear(audio: np.ndarray, source_rate: int, target_rate: int) -> np.ndarray:
    """Resample a 1-D signal by linear interpolation.

    Output length is ``round(len(audio) * target_rate / source_rate)``. Output
    sample ``i`` sits at virtual source index ``x = i * source_rate / target_rate``
    and blends ``audio[floor(x)]`` with the next sample (clamped to the last
    index) by the fractional part of ``x``.

    Returns ``audio`` unchanged when the rates match or the input is empty.
    """
    if source_rate == target_rate or audio.size == 0:
        return audio

    ratio = source_rate / target_rate
    out_length = round(audio.size * target_rate / source_rate)
    last = audio.size - 1

    positions = np.arange(out_length, dtype=np.float64) * ratio
    index_floor = np.minimum(np.floor(positions).astype(np.int64), last)
    index_ceil = np.minimum(index_floor + 1, last)
    fraction = positions - index_floor

    source = audio.astype(np.float64, copy=False)
    resampled = source[index_floor] * (1.0 - fraction) + source[index_ceil] * fraction
    return resampled.astype(np.float32)


class ResampleStage(AudioStage):
    """Resampling stage for the normalization pipeline.

    Args:
        target_sample_rate: Target sample rate in Hz (default: 16000).
    """

    def __init__(self, target_sample_rate: int = STT_SAMPLE_RATE) -> None:
        if target_sample_rate <= 0:
            msg = f"target_sample_rate must be positive, got {target_sample_rate}"
            raise ValueError(msg)
        self._target_sample_rate = target_sample_rate

    @property
    def name(self) -> str:
        """Identifier name for the stage."""
        return "resample"

    @property
    def target_sample_rate(self) -> int:
        return self._target_sample_rate

    def process(self, audio: AudioBuffer) -> AudioBuffer:
        """Convert a mono buffer to the target sample rate.

        If the buffer is already at the target rate, returns it unchanged.

        Raises:
            ValueError: If the buffer is not mono.
        """
        if audio.sample_rate == self._target_sample_rate:
            return audio

        resampled = resample_linear(audio.samples, audio.sample_rate, self._target_sample_rate)
        return AudioBuffer(channels=(resampled,), sample_rate=self._target_sample_rate)
