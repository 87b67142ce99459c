"""Tests for the sqrt(N) downmix."""

from __future__ import annotations

import math

import numpy as np
import pytest

from murmur._types import AudioBuffer
from murmur.preprocessing.downmix import DownmixStage, downmix
from tests.helpers import make_sine


class TestDownmix:
    def test_single_channel_is_identity(self) -> None:
        channel = make_sine(duration=0.1)

        assert downmix((channel,)) is channel

    @pytest.mark.parametrize("n_channels", [2, 3, 6])
    def test_identical_channels_scale_by_sqrt_n(self, n_channels: int) -> None:
        # Arrange
        channel = np.full(100, 0.1, dtype=np.float32)

        # Act
        mono = downmix([channel] * n_channels)

        # Assert
        np.testing.assert_allclose(mono, 0.1 * math.sqrt(n_channels), rtol=1e-6)

    def test_opposite_channels_cancel(self) -> None:
        left = make_sine(duration=0.1)

        mono = downmix((left, -left))

        np.testing.assert_allclose(mono, 0.0, atol=1e-7)

    def test_output_is_float32(self) -> None:
        left = np.ones(10, dtype=np.float32)

        assert downmix((left, left)).dtype == np.float32


class TestDownmixStage:
    def test_stereo_becomes_mono(self) -> None:
        left = np.full(50, 0.2, dtype=np.float32)
        right = np.full(50, 0.4, dtype=np.float32)
        audio = AudioBuffer(channels=(left, right), sample_rate=44100)

        result = DownmixStage().process(audio)

        assert result.is_mono
        assert result.sample_rate == 44100
        np.testing.assert_allclose(result.samples, 0.6 / math.sqrt(2), rtol=1e-6)

    def test_mono_passes_through(self) -> None:
        audio = AudioBuffer(channels=(make_sine(duration=0.1),), sample_rate=16000)

        assert DownmixStage().process(audio) is audio

    def test_input_buffer_is_not_modified(self) -> None:
        left = np.full(10, 0.5, dtype=np.float32)
        right = np.full(10, -0.25, dtype=np.float32)
        audio = AudioBuffer(channels=(left, right), sample_rate=8000)

        DownmixStage().process(audio)

        np.testing.assert_array_equal(audio.channels[0], 0.5)
        np.testing.assert_array_equal(audio.channels[1], -0.25)
