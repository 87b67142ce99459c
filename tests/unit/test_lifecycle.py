"""Tests for ModelLifecycleManager: single load, readiness wait, failure handling."""

from __future__ import annotations

import asyncio

import pytest

from murmur._types import LogLevel, ModelState
from murmur.engine.lifecycle import ModelLifecycleManager
from murmur.exceptions import (
    InvalidTransitionError,
    ModelLoadError,
    ModelNotReadyError,
    ModelTimeoutError,
)
from murmur.journal import LogJournal
from tests.helpers import FakeEngine, FakeLoader


def _manager(loader: FakeLoader, journal: LogJournal | None = None) -> ModelLifecycleManager:
    return ModelLifecycleManager(loader, model_id="fake/whisper", journal=journal)


class TestEnsureLoaded:
    async def test_loads_once_and_becomes_ready(self, fake_loader: FakeLoader) -> None:
        lifecycle = _manager(fake_loader)

        await lifecycle.ensure_loaded()

        assert lifecycle.state is ModelState.READY
        assert lifecycle.is_ready
        assert fake_loader.load_calls == 1
        assert lifecycle.device == "cpu"

    async def test_concurrent_calls_start_a_single_load(self) -> None:
        # Arrange
        gate = asyncio.Event()
        loader = FakeLoader(gate=gate)
        lifecycle = _manager(loader)

        # Act
        tasks = [asyncio.create_task(lifecycle.ensure_loaded()) for _ in range(5)]
        await asyncio.sleep(0)
        assert lifecycle.is_loading
        gate.set()
        await asyncio.gather(*tasks)

        # Assert
        assert loader.load_calls == 1
        assert lifecycle.is_ready

    async def test_ready_model_is_not_reloaded(self, fake_loader: FakeLoader) -> None:
        lifecycle = _manager(fake_loader)
        await lifecycle.ensure_loaded()

        await lifecycle.ensure_loaded()

        assert fake_loader.load_calls == 1

    async def test_failure_sets_failed_and_raises(self) -> None:
        loader = FakeLoader(error=RuntimeError("CUDA out of memory"))
        lifecycle = _manager(loader)

        with pytest.raises(ModelLoadError, match="CUDA out of memory"):
            await lifecycle.ensure_loaded()

        assert lifecycle.state is ModelState.FAILED
        assert lifecycle.last_error == "CUDA out of memory"

    async def test_model_load_error_reason_is_kept(self) -> None:
        loader = FakeLoader(error=ModelLoadError("fake/whisper", "weights missing"))
        lifecycle = _manager(loader)

        with pytest.raises(ModelLoadError) as exc_info:
            await lifecycle.ensure_loaded()

        assert exc_info.value.reason == "weights missing"
        assert lifecycle.last_error == "weights missing"

    async def test_explicit_retrigger_after_failure(self) -> None:
        loader = FakeLoader(error=RuntimeError("network down"))
        lifecycle = _manager(loader)
        with pytest.raises(ModelLoadError):
            await lifecycle.ensure_loaded()

        loader.error = None
        await lifecycle.ensure_loaded()

        assert lifecycle.is_ready
        assert lifecycle.last_error is None
        assert loader.load_calls == 2

    async def test_cancelled_load_is_recorded_as_failure(self) -> None:
        gate = asyncio.Event()
        lifecycle = _manager(FakeLoader(gate=gate))
        task = asyncio.create_task(lifecycle.ensure_loaded())
        await asyncio.sleep(0)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert lifecycle.state is ModelState.FAILED
        assert lifecycle.last_error == "load cancelled"


class TestStartLoading:
    async def test_background_load(self, fake_loader: FakeLoader) -> None:
        lifecycle = _manager(fake_loader)

        task = lifecycle.start_loading()
        assert task is not None
        assert lifecycle.is_loading
        await task

        assert lifecycle.is_ready

    async def test_second_call_returns_same_task(self) -> None:
        gate = asyncio.Event()
        loader = FakeLoader(gate=gate)
        lifecycle = _manager(loader)

        first = lifecycle.start_loading()
        second = lifecycle.start_loading()
        gate.set()
        await asyncio.gather(first, second)

        assert first is second
        assert loader.load_calls == 1

    async def test_background_failure_does_not_raise(self) -> None:
        lifecycle = _manager(FakeLoader(error=RuntimeError("bad checkpoint")))

        task = lifecycle.start_loading()
        assert task is not None
        await task

        assert lifecycle.state is ModelState.FAILED
        assert lifecycle.last_error == "bad checkpoint"


class TestAwaitReady:
    async def test_unloaded_raises_not_ready_without_loading(self, fake_loader: FakeLoader) -> None:
        lifecycle = _manager(fake_loader)

        with pytest.raises(ModelNotReadyError):
            await lifecycle.await_ready(1.0)

        assert fake_loader.load_calls == 0
        assert lifecycle.state is ModelState.UNLOADED

    async def test_returns_engine_when_ready(self, fake_engine: FakeEngine, fake_loader: FakeLoader) -> None:
        lifecycle = _manager(fake_loader)
        await lifecycle.ensure_loaded()

        assert await lifecycle.await_ready(1.0) is fake_engine

    async def test_waits_for_in_flight_load(self, fake_engine: FakeEngine) -> None:
        gate = asyncio.Event()
        lifecycle = _manager(FakeLoader(engine=fake_engine, gate=gate))
        lifecycle.start_loading()
        waiter = asyncio.create_task(lifecycle.await_ready(5.0))
        await asyncio.sleep(0)
        assert not waiter.done()

        gate.set()

        assert await waiter is fake_engine

    async def test_timeout_leaves_load_running(self, fake_engine: FakeEngine) -> None:
        # Arrange
        gate = asyncio.Event()
        lifecycle = _manager(FakeLoader(engine=fake_engine, gate=gate))
        lifecycle.start_loading()

        # Act / Assert
        with pytest.raises(ModelTimeoutError):
            await lifecycle.await_ready(0.01)
        assert lifecycle.is_loading

        gate.set()
        assert await lifecycle.await_ready(1.0) is fake_engine

    async def test_waiter_wakes_on_failure(self) -> None:
        gate = asyncio.Event()
        loader = FakeLoader(error=RuntimeError("corrupt weights"), gate=gate)
        lifecycle = _manager(loader)
        lifecycle.start_loading()
        waiter = asyncio.create_task(lifecycle.await_ready(5.0))
        await asyncio.sleep(0)

        gate.set()

        with pytest.raises(ModelLoadError, match="corrupt weights"):
            await waiter

    async def test_failed_state_is_not_retried(self) -> None:
        loader = FakeLoader(error=RuntimeError("nope"))
        lifecycle = _manager(loader)
        with pytest.raises(ModelLoadError):
            await lifecycle.ensure_loaded()

        with pytest.raises(ModelLoadError):
            await lifecycle.await_ready(1.0)

        assert loader.load_calls == 1


class TestTransitionsAndJournal:
    def test_invalid_transition_raises(self, fake_loader: FakeLoader) -> None:
        lifecycle = _manager(fake_loader)

        with pytest.raises(InvalidTransitionError, match="unloaded -> ready"):
            lifecycle._transition(ModelState.READY)

    async def test_ready_is_terminal(self, fake_loader: FakeLoader) -> None:
        lifecycle = _manager(fake_loader)
        await lifecycle.ensure_loaded()

        with pytest.raises(InvalidTransitionError):
            lifecycle._transition(ModelState.LOADING)

    async def test_milestones_are_journaled(self, fake_loader: FakeLoader) -> None:
        journal = LogJournal()
        lifecycle = _manager(fake_loader, journal)

        await lifecycle.ensure_loaded()

        assert [e.message for e in journal.entries] == [
            "Model load started: fake/whisper",
            "Model ready: fake/whisper (device: cpu)",
        ]

    async def test_failure_is_journaled_as_error(self) -> None:
        journal = LogJournal()
        lifecycle = _manager(FakeLoader(error=RuntimeError("oom")), journal)

        with pytest.raises(ModelLoadError):
            await lifecycle.ensure_loaded()

        assert journal.entries[-1].level is LogLevel.ERROR
        assert journal.entries[-1].message == "Model load failed: oom"
