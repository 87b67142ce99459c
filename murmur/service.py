"""TranscriptionService — the application-facing entry point.

Wires validator, normalizer, lifecycle manager and orchestrator together
and exposes the observable state a UI binds to: readiness and loading
flags, the transcribing flag, the last error message, the last metrics
snapshot and the log journal.

Usage::

    service = TranscriptionService.from_settings()
    service.start()                       # background model load
    result = await service.transcribe(Path("clip.ogg"), {"language": "english"})
    service.close()                       # detach backend log capture
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Any

from murmur._audio_constants import DEFAULT_MAX_DURATION_S, DEFAULT_MAX_FILE_SIZE_MB, STT_SAMPLE_RATE
from murmur.config.settings import get_settings
from murmur.engine.lifecycle import ModelLifecycleManager
from murmur.engine.transformers_engine import TransformersEngineLoader
from murmur.journal import LogJournal
from murmur.logging import capture_backend_logs, get_logger, release_backend_logs
from murmur.models.requests import TranscriptionRequest, coerce_request
from murmur.preprocessing.pipeline import AudioNormalizer
from murmur.preprocessing.validation import AudioValidator
from murmur.transcription.orchestrator import TranscriptionOrchestrator

if TYPE_CHECKING:
    from murmur._types import LogEntry, PerformanceMetrics, TranscriptionResult
    from murmur.config.settings import MurmurSettings
    from murmur.engine.interface import EngineLoader
    from murmur.logging import JournalHandler

logger = get_logger("service")

_DEFAULT_ERROR_MESSAGE = "Speech recognition failed."


class TranscriptionService:
    """Validated, normalized, single-engine transcription.

    Args:
        lifecycle: Owner of the engine instance.
        journal: Log journal shared with the lifecycle manager.
        max_file_size_mb: Upload size limit.
        max_duration_s: Audio duration limit.
        enable_memory_check: Run the validator before each call.
        load_timeout_s: Bound on waiting for an in-flight model load.
        target_sample_rate: Rate the engine consumes.
        max_concurrent: Engine calls allowed in flight at once.
        backend_log_handler: Handler feeding backend log records into
            ``journal``; detached by ``close()``.
    """

    def __init__(
        self,
        lifecycle: ModelLifecycleManager,
        journal: LogJournal,
        *,
        max_file_size_mb: float = DEFAULT_MAX_FILE_SIZE_MB,
        max_duration_s: float = DEFAULT_MAX_DURATION_S,
        enable_memory_check: bool = True,
        load_timeout_s: float = 60.0,
        target_sample_rate: int = STT_SAMPLE_RATE,
        max_concurrent: int = 1,
        backend_log_handler: JournalHandler | None = None,
    ) -> None:
        self._lifecycle = lifecycle
        self._journal = journal
        self._max_file_size_mb = max_file_size_mb
        self._max_duration_s = max_duration_s
        self._enable_memory_check = enable_memory_check
        self._validator = AudioValidator()
        self._normalizer = AudioNormalizer(target_sample_rate)
        self._orchestrator = TranscriptionOrchestrator(
            lifecycle,
            journal,
            load_timeout_s=load_timeout_s,
            max_concurrent=max_concurrent,
        )
        self._in_flight = 0
        self._error: str | None = None
        self._backend_log_handler = backend_log_handler

    @classmethod
    def from_settings(
        cls,
        settings: MurmurSettings | None = None,
        *,
        loader: EngineLoader | None = None,
        journal: LogJournal | None = None,
        capture_backend_warnings: bool = True,
    ) -> TranscriptionService:
        """Build a service from ``MURMUR_*`` settings.

        The loader defaults to the transformers pipeline loader. With
        ``capture_backend_warnings``, warnings logged by the backend libraries
        are copied into the journal (through its remap predicate) until
        ``close()``.
        """
        settings = settings or get_settings()
        journal = journal or LogJournal()
        handler = capture_backend_logs(journal) if capture_backend_warnings else None
        if loader is None:
            loader = TransformersEngineLoader()

        lifecycle = ModelLifecycleManager(
            loader,
            model_id=settings.model.model_id,
            device=settings.model.device,
            dtype=settings.model.dtype,
            journal=journal,
        )
        return cls(
            lifecycle,
            journal,
            max_file_size_mb=settings.validation.max_file_size_mb,
            max_duration_s=settings.validation.max_duration_s,
            enable_memory_check=settings.validation.enable_memory_check,
            load_timeout_s=settings.model.load_timeout_s,
            target_sample_rate=settings.inference.target_sample_rate,
            max_concurrent=settings.inference.max_concurrent,
            backend_log_handler=handler,
        )

    def close(self) -> None:
        """Detach the backend log handler, if this service attached one.

        The handler is shared by every service writing to the same journal.
        """
        if self._backend_log_handler is not None:
            release_backend_logs(self._backend_log_handler)
            self._backend_log_handler = None

    async def __aenter__(self) -> TranscriptionService:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    # --- Observable state ---

    @property
    def is_model_ready(self) -> bool:
        return self._lifecycle.is_ready

    @property
    def is_model_loading(self) -> bool:
        return self._lifecycle.is_loading

    @property
    def is_transcribing(self) -> bool:
        return self._in_flight > 0

    @property
    def error(self) -> str | None:
        """Last error message: the latest failed call, else a failed model load."""
        return self._error or self._lifecycle.last_error

    @property
    def performance_metrics(self) -> PerformanceMetrics | None:
        return self._orchestrator.performance_metrics

    @property
    def logs(self) -> tuple[LogEntry, ...]:
        return self._journal.entries

    @property
    def journal(self) -> LogJournal:
        return self._journal

    @property
    def lifecycle(self) -> ModelLifecycleManager:
        return self._lifecycle

    def clear_logs(self) -> None:
        self._journal.clear()

    # --- Model lifecycle ---

    def start(self) -> asyncio.Task[None] | None:
        """Begin loading the model in the background."""
        return self._lifecycle.start_loading()

    async def ensure_loaded(self) -> None:
        """Load the model now, or return if a load is running or done.

        Raises:
            ModelLoadError: If this call ran the load and it failed.
        """
        await self._lifecycle.ensure_loaded()

    # --- Transcription ---

    async def transcribe(
        self,
        audio: bytes | Path,
        options: TranscriptionRequest | dict[str, Any] | None = None,
    ) -> TranscriptionResult:
        """Transcribe an audio clip.

        Args:
            audio: Encoded audio bytes or a path to an audio file.
            options: Request options (model or plain mapping); None = defaults.

        Raises:
            ValidationError: Size/duration limit exceeded or unreadable audio.
            DecodeError: Unsupported or corrupt container.
            ModelLoadError / ModelNotReadyError / ModelTimeoutError: No engine.
            InferenceError: The engine call failed.
        """
        self._error = None
        self._in_flight += 1
        self._journal.info("Transcription started")

        try:
            request = coerce_request(options)
            audio_bytes = await self._read(audio)
            loop = asyncio.get_running_loop()

            if self._enable_memory_check:
                validation = await loop.run_in_executor(
                    None,
                    self._validator.validate,
                    audio_bytes,
                    self._max_file_size_mb,
                    self._max_duration_s,
                )
                validation.raise_for_status()

            normalized = await loop.run_in_executor(None, self._normalizer.normalize, audio_bytes)
            return await self._orchestrator.transcribe(
                normalized, request, source_size_bytes=len(audio_bytes)
            )
        except Exception as exc:
            self._record_failure(exc)
            raise
        finally:
            self._in_flight -= 1

    @staticmethod
    async def _read(audio: bytes | Path) -> bytes:
        if isinstance(audio, (bytes, bytearray, memoryview)):
            return bytes(audio)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, Path(audio).read_bytes)

    def _record_failure(self, exc: Exception) -> None:
        self._error = str(exc) or _DEFAULT_ERROR_MESSAGE
        self._journal.error(f"Transcription failed: {self._error}")
        logger.error("transcription_failed", error=self._error, error_type=type(exc).__name__)
