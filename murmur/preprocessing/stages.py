"""Base interface for audio normalization stages."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from murmur._types import AudioBuffer


class AudioStage(ABC):
    """Individual audio normalization stage.

    Each stage receives an AudioBuffer and returns a new one. Stages hold no
    per-request state, so a single instance is shared across requests.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier name for the stage (e.g. 'downmix', 'resample')."""
        ...

    @abstractmethod
    def process(self, audio: AudioBuffer) -> AudioBuffer:
        """Process a buffer.

        Args:
            audio: Input buffer. Must not be modified.

        Returns:
            A new AudioBuffer, or ``audio`` itself when the stage is a no-op.
        """
        ...
