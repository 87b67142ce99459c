"""Abstract interface for speech-recognition engines.

An engine is a black box with a single call contract::

    result = await engine(audio_reference, parameters)

``audio_reference`` is a path to a mono WAV at the model's sample rate.
``parameters`` is an open key/value map; recognized keys are
``return_timestamps`` (True | "word"), ``language`` (ISO 639-1 code),
``task`` ("transcribe" | "translate"), ``chunk_length_s``,
``stride_length_s`` and ``generate_kwargs``. Absent keys mean the engine's
own defaults apply.

``result`` is either a plain string or a mapping/object with ``text`` and
optional ``chunks``, each chunk carrying ``timestamp=(start, end)`` and
``text``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Union

EngineOutput = Union[str, Mapping[str, Any], Any]


class ASREngine(ABC):
    """A loaded, ready-to-call recognition engine."""

    @property
    @abstractmethod
    def model_id(self) -> str:
        """Identifier of the loaded model (e.g. "openai/whisper-small")."""
        ...

    @property
    @abstractmethod
    def device(self) -> str:
        """Device the model runs on (e.g. "cpu", "cuda:0")."""
        ...

    @abstractmethod
    async def __call__(self, audio_reference: str, parameters: dict[str, Any]) -> EngineOutput:
        """Run recognition on the referenced audio.

        Raises:
            Exception: Any engine failure; the orchestrator wraps it.
        """
        ...


class EngineLoader(ABC):
    """Builds an ASREngine. Called at most once per load attempt."""

    @abstractmethod
    async def load(self, model_id: str, device: str, dtype: str) -> ASREngine:
        """Load the model into memory.

        Args:
            model_id: Model identifier or local path.
            device: "auto", "cpu", "cuda", "cuda:N" or "mps".
            dtype: "auto" or a torch dtype name ("float16", "float32"...).

        Raises:
            ModelLoadError: If the model cannot be loaded.
        """
        ...
