"""Shared fixtures for all tests."""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

# Ensure repo root is on sys.path so tests can import the `murmur` package
# when running pytest from the repository root without an editable install.
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402

from murmur.config.settings import get_settings  # noqa: E402
from murmur.journal import LogJournal  # noqa: E402
from tests.helpers import FakeEngine, FakeLoader, make_tone_wav  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    """Settings are cached process-wide; tests must not leak env overrides."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def journal() -> LogJournal:
    return LogJournal()


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def fake_loader(fake_engine: FakeEngine) -> FakeLoader:
    return FakeLoader(engine=fake_engine)


@pytest.fixture
def tone_16khz_3s() -> bytes:
    """3 seconds of 16-bit, 16kHz, mono WAV (440Hz sine tone)."""
    return make_tone_wav(duration=3.0)


@pytest.fixture
def tone_44khz_stereo() -> bytes:
    """1 second of 16-bit, 44.1kHz, stereo WAV."""
    return make_tone_wav(duration=1.0, sample_rate=44100, channels=2)
