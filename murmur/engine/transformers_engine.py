"""ASR engine backed by a Hugging Face ``transformers`` pipeline.

transformers is an optional dependency — the import is guarded and a missing
install surfaces as ModelLoadError at load time.
"""

from __future__ import annotations

import asyncio
from typing import Any

import soundfile as sf

from murmur.engine.interface import ASREngine, EngineLoader, EngineOutput
from murmur.engine.torch_utils import configure_torch_inference, resolve_device, resolve_dtype
from murmur.exceptions import ModelLoadError
from murmur.logging import get_logger

try:
    from transformers import pipeline as _hf_pipeline
except ImportError:
    _hf_pipeline = None

logger = get_logger("engine.transformers")

# Keys the Python pipeline expects inside generate_kwargs rather than at top level.
_GENERATE_LEVEL_KEYS = ("language", "task")


def to_pipeline_kwargs(parameters: dict[str, Any]) -> dict[str, Any]:
    """Translate the engine parameter map into ``pipeline.__call__`` kwargs.

    ``language`` and ``task`` move into ``generate_kwargs``; everything else
    is forwarded unchanged. The input map is not modified.
    """
    kwargs = {k: v for k, v in parameters.items() if k not in _GENERATE_LEVEL_KEYS}
    generate = dict(parameters.get("generate_kwargs") or {})
    for key in _GENERATE_LEVEL_KEYS:
        if key in parameters:
            generate[key] = parameters[key]
    if generate:
        kwargs["generate_kwargs"] = generate
    return kwargs


class TransformersEngine(ASREngine):
    """Wraps a loaded ``automatic-speech-recognition`` pipeline."""

    def __init__(self, asr_pipeline: Any, model_id: str, device: str) -> None:
        self._pipeline = asr_pipeline
        self._model_id = model_id
        self._device = device

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def device(self) -> str:
        return self._device

    async def __call__(self, audio_reference: str, parameters: dict[str, Any]) -> EngineOutput:
        kwargs = to_pipeline_kwargs(parameters)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: self._run(audio_reference, kwargs))

    def _run(self, audio_reference: str, kwargs: dict[str, Any]) -> EngineOutput:
        # Feed decoded samples so the pipeline never shells out to ffmpeg.
        samples, sample_rate = sf.read(audio_reference, dtype="float32")
        inputs = {"raw": samples, "sampling_rate": sample_rate}
        return self._pipeline(inputs, **kwargs)


class TransformersEngineLoader(EngineLoader):
    """Builds a TransformersEngine via ``transformers.pipeline``."""

    async def load(self, model_id: str, device: str, dtype: str) -> ASREngine:
        if _hf_pipeline is None:
            msg = "transformers is not installed. Install with: pip install murmur[transformers]"
            raise ModelLoadError(model_id, msg)

        resolved_device = resolve_device(device)
        try:
            torch_dtype = resolve_dtype(dtype)
        except (ImportError, ValueError) as exc:
            raise ModelLoadError(model_id, str(exc)) from exc

        configure_torch_inference()

        loop = asyncio.get_running_loop()
        try:
            asr_pipeline = await loop.run_in_executor(
                None,
                lambda: _hf_pipeline(
                    "automatic-speech-recognition",
                    model=model_id,
                    device=resolved_device,
                    torch_dtype=torch_dtype,
                ),
            )
        except Exception as exc:
            raise ModelLoadError(model_id, str(exc)) from exc

        logger.info(
            "model_loaded",
            model_id=model_id,
            device=resolved_device,
            dtype=dtype,
        )
        return TransformersEngine(asr_pipeline, model_id=model_id, device=resolved_device)
