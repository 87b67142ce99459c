"""TranscriptionOrchestrator — one engine call per transcription.

Takes a normalized buffer and caller options, waits for the engine via the
injected lifecycle manager, builds the parameter map, calls the engine
exactly once, times that call, and turns the result into a
TranscriptionResult plus a PerformanceMetrics snapshot.

Engine calls are single-flight: at most ``max_concurrent`` (default 1) run
at a time against the shared engine; later callers queue in arrival order.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

from murmur._audio_constants import ESTIMATE_BYTES_PER_SECOND
from murmur._types import PerformanceMetrics, TimestampGranularity, TranscriptionResult
from murmur.exceptions import InferenceError
from murmur.logging import get_logger
from murmur.preprocessing.audio_io import transient_wav
from murmur.transcription.parameters import build_engine_parameters
from murmur.transcription.results import normalize_engine_output

if TYPE_CHECKING:
    from collections.abc import Callable

    from murmur._types import AudioBuffer
    from murmur.engine.lifecycle import ModelLifecycleManager
    from murmur.journal import LogJournal
    from murmur.models.requests import TranscriptionRequest

logger = get_logger("transcription.orchestrator")


def estimate_duration_s(size_bytes: int) -> float:
    """Rough audio duration from byte size, assuming 16kHz 16-bit mono.

    Compressed containers make this wildly off; it is only a fallback.
    """
    return size_bytes / ESTIMATE_BYTES_PER_SECOND


class TranscriptionOrchestrator:
    """Composes normalized audio and options into a single engine call.

    Args:
        lifecycle: Owner of the engine instance.
        journal: Receives user-facing milestones and failures.
        load_timeout_s: Bound on waiting for an in-flight model load.
        max_concurrent: Engine calls allowed in flight at once.
        clock: Monotonic clock in seconds (for deterministic tests).
    """

    def __init__(
        self,
        lifecycle: ModelLifecycleManager,
        journal: LogJournal,
        load_timeout_s: float = 60.0,
        max_concurrent: int = 1,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._lifecycle = lifecycle
        self._journal = journal
        self._load_timeout_s = load_timeout_s
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._clock = clock
        self._metrics: PerformanceMetrics | None = None

    @property
    def performance_metrics(self) -> PerformanceMetrics | None:
        """Metrics of the last successful call; None before the first one."""
        return self._metrics

    async def transcribe(
        self,
        audio: AudioBuffer,
        request: TranscriptionRequest,
        *,
        source_size_bytes: int | None = None,
    ) -> TranscriptionResult:
        """Run one transcription.

        Args:
            audio: Validated, normalized mono buffer.
            request: Caller options.
            source_size_bytes: Size of the original upload, used for the
                byte-size duration estimate.

        Raises:
            ModelTimeoutError: The model was still loading after the wait bound.
            ModelLoadError / ModelNotReadyError: No usable engine.
            InferenceError: The engine call failed or returned garbage.
        """
        if not audio.is_mono:
            msg = f"Orchestrator needs mono audio, got {audio.num_channels} channels"
            raise ValueError(msg)

        engine = await self._lifecycle.await_ready(self._load_timeout_s)
        params = build_engine_parameters(request)

        self._journal.info(
            f"Transcription options: language={params.get('language', 'auto')}, "
            f"task={params.get('task', 'transcribe')}"
        )
        if "chunk_length_s" in params:
            self._journal.info(
                f"Chunked processing: chunk_length={params['chunk_length_s']}s, "
                f"stride={params.get('stride_length_s', 0)}s"
            )

        async with self._semaphore:
            with transient_wav(audio) as reference:
                self._journal.info("Model inference started")
                started = self._clock()
                try:
                    output = await engine(reference, params)
                except Exception as exc:
                    self._journal.error(f"Inference failed: {exc}")
                    logger.error("inference_failed", model_id=engine.model_id, error=str(exc))
                    raise InferenceError(engine.model_id, str(exc)) from exc
                processing_time_s = self._clock() - started

        try:
            result = normalize_engine_output(
                output,
                include_chunks=request.return_timestamps is not TimestampGranularity.NONE,
            )
        except (TypeError, ValueError) as exc:
            self._journal.error(f"Inference failed: {exc}")
            raise InferenceError(engine.model_id, str(exc)) from exc

        metrics = self._build_metrics(
            audio,
            processing_time_s,
            source_size_bytes,
            device=engine.device,
            model_id=engine.model_id,
        )
        self._metrics = metrics

        self._journal.info(f"Transcription finished: {processing_time_s:.2f}s")
        if metrics.audio_duration_s > 0:
            self._journal.info(
                f"Realtime factor: {metrics.realtime_factor:.2f}x "
                f"(audio: {metrics.audio_duration_s:.2f}s)"
            )
        if result.text:
            self._journal.info(f"Transcript: {len(result.text)} characters")

        logger.info(
            "transcription_complete",
            model_id=engine.model_id,
            processing_time_s=round(processing_time_s, 3),
            audio_duration_s=round(metrics.audio_duration_s, 3),
            realtime_factor=round(metrics.realtime_factor, 2),
            chunks=len(result.chunks) if result.chunks is not None else None,
        )
        return result

    @staticmethod
    def _build_metrics(
        audio: AudioBuffer,
        processing_time_s: float,
        source_size_bytes: int | None,
        *,
        device: str,
        model_id: str,
    ) -> PerformanceMetrics:
        estimated = (
            estimate_duration_s(source_size_bytes) if source_size_bytes is not None else None
        )
        if audio.num_samples > 0:
            duration_s, source = audio.duration_s, "decoded"
        else:
            duration_s, source = estimated or 0.0, "estimated"

        realtime_factor = (
            duration_s / processing_time_s if duration_s > 0 and processing_time_s > 0 else 0.0
        )
        return PerformanceMetrics(
            processing_time_s=processing_time_s,
            audio_duration_s=duration_s,
            realtime_factor=realtime_factor,
            device=device,
            model_id=model_id,
            estimated_duration_s=estimated,
            duration_source=source,
        )
