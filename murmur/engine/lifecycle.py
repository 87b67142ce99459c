"""ModelLifecycleManager — owns the single recognition-engine instance.

States:
    UNLOADED -> LOADING -> READY
                LOADING -> FAILED -> LOADING (explicit re-trigger only)

Rules:
- READY is terminal while the instance exists; there is no unload.
- FAILED is never retried automatically. ``ensure_loaded()`` or
  ``start_loading()`` called by the owner is the re-trigger.
- Duplicate loads are prevented by checking state before transitioning, not
  by a lock: the transition to LOADING happens before the first suspension
  point, so a re-entrant call sees LOADING and returns.
- Waiters block on a one-shot completion signal set on success and failure.
  A waiter timing out abandons only its own wait; the load keeps running.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from murmur._types import ModelState
from murmur.exceptions import (
    InvalidTransitionError,
    ModelLoadError,
    ModelNotReadyError,
    ModelTimeoutError,
)
from murmur.logging import get_logger

if TYPE_CHECKING:
    from murmur.engine.interface import ASREngine, EngineLoader
    from murmur.journal import LogJournal

logger = get_logger("engine.lifecycle")

_VALID_TRANSITIONS: dict[ModelState, frozenset[ModelState]] = {
    ModelState.UNLOADED: frozenset({ModelState.LOADING}),
    ModelState.LOADING: frozenset({ModelState.READY, ModelState.FAILED}),
    ModelState.READY: frozenset(),
    ModelState.FAILED: frozenset({ModelState.LOADING}),
}


class ModelLifecycleManager:
    """Lazily loads one engine and gates callers on its readiness.

    Args:
        loader: Builds the engine; invoked once per load attempt.
        model_id: Model identifier passed to the loader.
        device: Requested device ("auto" resolves at load time).
        dtype: Requested dtype name.
        journal: Optional journal for user-facing load milestones.
    """

    def __init__(
        self,
        loader: EngineLoader,
        model_id: str,
        device: str = "auto",
        dtype: str = "auto",
        journal: LogJournal | None = None,
    ) -> None:
        self._loader = loader
        self._model_id = model_id
        self._device = device
        self._dtype = dtype
        self._journal = journal
        self._state = ModelState.UNLOADED
        self._engine: ASREngine | None = None
        self._last_error: str | None = None
        self._settled: asyncio.Event | None = None
        self._load_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is ModelState.READY

    @property
    def is_loading(self) -> bool:
        return self._state is ModelState.LOADING

    @property
    def last_error(self) -> str | None:
        """Reason of the most recent failed load, cleared when a new load starts."""
        return self._last_error

    @property
    def model_id(self) -> str:
        if self._engine is not None:
            return self._engine.model_id
        return self._model_id

    @property
    def device(self) -> str | None:
        """Resolved device, available once READY."""
        return self._engine.device if self._engine is not None else None

    async def ensure_loaded(self) -> None:
        """Load the engine unless a load is in flight or already done.

        Raises:
            ModelLoadError: If this call ran the load and it failed.
        """
        if self._state in (ModelState.LOADING, ModelState.READY):
            return
        self._begin_loading()
        await self._load()

    def start_loading(self) -> asyncio.Task[None] | None:
        """Schedule a background load and return its task.

        Returns the in-flight task (or None if already READY) when a load
        was started earlier. Failures are recorded in ``last_error``.
        """
        if self._state in (ModelState.LOADING, ModelState.READY):
            return self._load_task
        self._begin_loading()
        self._load_task = asyncio.get_running_loop().create_task(self._load_in_background())
        return self._load_task

    async def await_ready(self, timeout_s: float) -> ASREngine:
        """Return the engine, waiting up to ``timeout_s`` for an in-flight load.

        Never triggers a load.

        Raises:
            ModelNotReadyError: If no load was ever started.
            ModelLoadError: If the load failed (now or before the call).
            ModelTimeoutError: If the load is still running after ``timeout_s``.
        """
        if self._state is ModelState.LOADING:
            assert self._settled is not None
            try:
                await asyncio.wait_for(self._settled.wait(), timeout=timeout_s)
            except asyncio.TimeoutError:
                logger.warning("model_wait_timeout", model_id=self._model_id, timeout_s=timeout_s)
                raise ModelTimeoutError(self._model_id, timeout_s) from None

        if self._state is ModelState.READY:
            assert self._engine is not None
            return self._engine
        if self._state is ModelState.FAILED:
            raise ModelLoadError(self._model_id, self._last_error or "unknown error")
        raise ModelNotReadyError(self._model_id)

    def _transition(self, target: ModelState) -> None:
        if target not in _VALID_TRANSITIONS[self._state]:
            raise InvalidTransitionError(self._state.value, target.value)
        logger.info(
            "model_state_transition",
            model_id=self._model_id,
            from_state=self._state.value,
            to_state=target.value,
        )
        self._state = target

    def _begin_loading(self) -> None:
        self._transition(ModelState.LOADING)
        self._last_error = None
        self._settled = asyncio.Event()
        if self._journal is not None:
            self._journal.info(f"Model load started: {self._model_id}")

    async def _load(self) -> None:
        settled = self._settled
        assert settled is not None
        try:
            engine = await self._loader.load(self._model_id, self._device, self._dtype)
        except asyncio.CancelledError:
            self._fail("load cancelled")
            settled.set()
            raise
        except Exception as exc:
            reason = exc.reason if isinstance(exc, ModelLoadError) else str(exc)
            self._fail(reason)
            settled.set()
            if isinstance(exc, ModelLoadError):
                raise
            raise ModelLoadError(self._model_id, reason) from exc

        self._engine = engine
        self._transition(ModelState.READY)
        if self._journal is not None:
            self._journal.info(f"Model ready: {engine.model_id} (device: {engine.device})")
        settled.set()

    async def _load_in_background(self) -> None:
        try:
            await self._load()
        except ModelLoadError:
            # Already recorded in last_error and the journal by _fail().
            pass

    def _fail(self, reason: str) -> None:
        self._last_error = reason
        self._transition(ModelState.FAILED)
        logger.error("model_load_failed", model_id=self._model_id, reason=reason)
        if self._journal is not None:
            self._journal.error(f"Model load failed: {reason}")
