"""Tests for linear-interpolation resampling and the ResampleStage."""

from __future__ import annotations

import numpy as np
import pytest

from murmur._types import AudioBuffer
from murmur.preprocessing.resample import ResampleStage, resample_linear
from tests.helpers import make_sine


class TestResampleLinear:
    def test_same_rate_is_identity(self) -> None:
        audio = make_sine(sample_rate=16000, duration=0.1)

        result = resample_linear(audio, 16000, 16000)

        assert result is audio

    def test_empty_input_returns_empty(self) -> None:
        audio = np.array([], dtype=np.float32)

        result = resample_linear(audio, 44100, 16000)

        assert result.size == 0

    @pytest.mark.parametrize(
        ("source_rate", "n_samples", "expected"),
        [
            (44100, 44100, 16000),
            (48000, 48000, 16000),
            (8000, 8000, 16000),
            (22050, 1000, 726),  # round(1000 * 16000 / 22050) = round(725.6)
            (44100, 1, 0),  # round(0.36) = 0
        ],
    )
    def test_output_length_is_rounded_ratio(
        self, source_rate: int, n_samples: int, expected: int
    ) -> None:
        audio = np.zeros(n_samples, dtype=np.float32)

        result = resample_linear(audio, source_rate, 16000)

        assert len(result) == expected

    def test_linear_ramp_is_preserved_on_downsample(self) -> None:
        """A ramp sampled at 32kHz stays a ramp at 16kHz (every other sample)."""
        # Arrange
        ramp = np.arange(32, dtype=np.float32)

        # Act
        result = resample_linear(ramp, 32000, 16000)

        # Assert
        np.testing.assert_allclose(result, np.arange(0, 32, 2, dtype=np.float32))

    def test_two_sample_ramp_upsampled_is_monotonic_with_same_endpoints(self) -> None:
        audio = np.array([0.0, 1.0], dtype=np.float32)

        result = resample_linear(audio, 8000, 16000)

        assert len(result) >= 3
        assert np.all(np.diff(result) >= 0)
        assert result[0] == pytest.approx(0.0)
        assert result[-1] == pytest.approx(1.0)

    def test_upsample_interpolates_midpoints(self) -> None:
        audio = np.array([0.0, 1.0, 0.0, -1.0], dtype=np.float32)

        result = resample_linear(audio, 8000, 16000)

        # Last two outputs both clamp onto the final source sample.
        np.testing.assert_allclose(result, [0.0, 0.5, 1.0, 0.5, 0.0, -0.5, -1.0, -1.0])

    def test_output_is_float32(self) -> None:
        audio = make_sine(sample_rate=44100, duration=0.05)

        result = resample_linear(audio, 44100, 16000)

        assert result.dtype == np.float32

    def test_first_sample_is_kept(self) -> None:
        audio = np.array([0.25, 0.5, 0.75, 1.0, 0.5, 0.0], dtype=np.float32)

        result = resample_linear(audio, 48000, 16000)

        assert result[0] == pytest.approx(0.25)

    def test_input_is_not_modified(self) -> None:
        audio = make_sine(sample_rate=44100, duration=0.05)
        original = audio.copy()

        resample_linear(audio, 44100, 16000)

        np.testing.assert_array_equal(audio, original)


class TestResampleStage:
    def test_resample_44khz_to_16khz(self) -> None:
        # Arrange
        audio = AudioBuffer(channels=(make_sine(sample_rate=44100, duration=1.0),), sample_rate=44100)
        stage = ResampleStage(target_sample_rate=16000)

        # Act
        result = stage.process(audio)

        # Assert
        assert result.sample_rate == 16000
        assert result.num_samples == 16000

    def test_buffer_at_target_rate_is_returned_unchanged(self) -> None:
        audio = AudioBuffer(channels=(make_sine(),), sample_rate=16000)
        stage = ResampleStage()

        assert stage.process(audio) is audio

    def test_duration_is_preserved(self) -> None:
        audio = AudioBuffer(channels=(make_sine(sample_rate=48000, duration=2.5),), sample_rate=48000)

        result = ResampleStage(16000).process(audio)

        assert result.duration_s == pytest.approx(2.5, abs=1e-3)

    def test_rejects_multichannel_buffer(self) -> None:
        tone = make_sine(sample_rate=44100, duration=0.1)
        audio = AudioBuffer(channels=(tone, tone), sample_rate=44100)

        with pytest.raises(ValueError, match="downmix first"):
            ResampleStage().process(audio)

    def test_rejects_non_positive_target(self) -> None:
        with pytest.raises(ValueError, match="positive"):
            ResampleStage(target_sample_rate=0)

    def test_name(self) -> None:
        assert ResampleStage().name == "resample"
