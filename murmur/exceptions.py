"""Typed exceptions for murmur.

Hierarchy:
    MurmurError (base)
    +-- AudioError
    |   +-- ValidationError
    |   +-- DecodeError
    +-- ModelError
    |   +-- ModelLoadError
    |   +-- ModelTimeoutError
    |   +-- ModelNotReadyError
    |   +-- InvalidTransitionError
    +-- InferenceError
"""

from __future__ import annotations


class MurmurError(Exception):
    """Base for all murmur exceptions."""


# --- Audio ---


class AudioError(MurmurError):
    """Audio processing error."""


class ValidationError(AudioError):
    """Audio rejected by the size/duration gate or unreadable while probing."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class DecodeError(AudioError):
    """Unsupported or corrupt audio container."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Could not decode audio: {detail}")


# --- Model ---


class ModelError(MurmurError):
    """Model lifecycle error."""


class ModelLoadError(ModelError):
    """Engine failed to initialize."""

    def __init__(self, model_id: str, reason: str) -> None:
        self.model_id = model_id
        self.reason = reason
        super().__init__(f"Failed to load model '{model_id}': {reason}")


class ModelTimeoutError(ModelError):
    """Readiness wait exceeded its bound."""

    def __init__(self, model_id: str, timeout_s: float) -> None:
        self.model_id = model_id
        self.timeout_s = timeout_s
        super().__init__(f"Model '{model_id}' was not ready within {timeout_s}s")


class ModelNotReadyError(ModelError):
    """Model was never asked to load."""

    def __init__(self, model_id: str) -> None:
        self.model_id = model_id
        super().__init__(f"Model '{model_id}' is not loaded")


class InvalidTransitionError(ModelError):
    """Invalid transition in the model lifecycle state machine."""

    def __init__(self, from_state: str, to_state: str) -> None:
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Invalid transition: {from_state} -> {to_state}")


# --- Inference ---


class InferenceError(MurmurError):
    """The engine call itself failed."""

    def __init__(self, model_id: str, reason: str) -> None:
        self.model_id = model_id
        self.reason = reason
        super().__init__(f"Inference failed for model '{model_id}': {reason}")
