"""Audio normalization pipeline.

Decodes audio bytes and runs the buffer through the normalization stages
in sequence: Decode -> Downmix -> Resample -> mono float32 at the model rate.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from murmur._audio_constants import STT_SAMPLE_RATE
from murmur.logging import get_logger
from murmur.preprocessing.audio_io import decode_audio
from murmur.preprocessing.downmix import DownmixStage
from murmur.preprocessing.resample import ResampleStage

if TYPE_CHECKING:
    from murmur._types import AudioBuffer
    from murmur.preprocessing.stages import AudioStage

logger = get_logger("preprocessing.pipeline")


class AudioNormalizer:
    """Turns an arbitrary audio blob into the buffer the model requires.

    Args:
        target_sample_rate: Rate of the output buffer (default: 16000).
        stages: Stages to run after decoding. If None, uses downmix
                followed by resample to ``target_sample_rate``.
    """

    def __init__(
        self,
        target_sample_rate: int = STT_SAMPLE_RATE,
        stages: list[AudioStage] | None = None,
    ) -> None:
        self._target_sample_rate = target_sample_rate
        self._stages = (
            stages
            if stages is not None
            else [DownmixStage(), ResampleStage(target_sample_rate)]
        )

    @property
    def target_sample_rate(self) -> int:
        return self._target_sample_rate

    @property
    def stages(self) -> list[AudioStage]:
        """List of pipeline stages."""
        return list(self._stages)

    def normalize(self, audio_bytes: bytes) -> AudioBuffer:
        """Decode and normalize audio through all stages.

        Args:
            audio_bytes: Input audio bytes (any supported format).

        Returns:
            Mono AudioBuffer at ``target_sample_rate``.

        Raises:
            DecodeError: If the input audio cannot be decoded.
        """
        audio = decode_audio(audio_bytes)

        for stage in self._stages:
            logger.debug(
                "stage_start",
                stage=stage.name,
                sample_rate=audio.sample_rate,
                channels=audio.num_channels,
            )
            audio = stage.process(audio)
            logger.debug(
                "stage_complete",
                stage=stage.name,
                sample_rate=audio.sample_rate,
                samples=audio.num_samples,
            )

        if not audio.is_mono or audio.sample_rate != self._target_sample_rate:
            msg = (
                f"Normalization produced {audio.num_channels} channel(s) at "
                f"{audio.sample_rate}Hz, expected mono at {self._target_sample_rate}Hz"
            )
            raise ValueError(msg)

        return audio
