"""Recognition engine contract, default transformers backend and lifecycle."""

from __future__ import annotations

from murmur.engine.interface import ASREngine, EngineLoader
from murmur.engine.lifecycle import ModelLifecycleManager

__all__ = ["ASREngine", "EngineLoader", "ModelLifecycleManager"]
