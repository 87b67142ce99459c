"""Audio decoding, probing and encoding functions.

Converts between bytes (file formats) and per-channel numpy float32 arrays.
"""

from __future__ import annotations

import contextlib
import io
import os
import tempfile
import wave
from typing import TYPE_CHECKING

import numpy as np
import soundfile as sf

from murmur._audio_constants import PCM_INT16_SCALE, PCM_UINT8_SCALE
from murmur._types import AudioBuffer
from murmur.exceptions import DecodeError
from murmur.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = get_logger("preprocessing.audio_io")


def decode_audio(audio_bytes: bytes) -> AudioBuffer:
    """Decode audio bytes to per-channel float32 PCM at the native rate.

    Supports WAV, FLAC, OGG, MP3 and the other formats libsndfile reads.
    Channels are kept separate; downmixing is a later stage.

    Args:
        audio_bytes: Audio file bytes.

    Returns:
        AudioBuffer with one array per channel.

    Raises:
        DecodeError: If the format is unsupported or bytes are invalid.
    """
    if not audio_bytes:
        raise DecodeError("empty audio (0 bytes)")

    try:
        data, sample_rate = sf.read(io.BytesIO(audio_bytes), dtype="float32", always_2d=True)
    except Exception:
        # Fallback to wave stdlib (plain WAV PCM without complex headers)
        try:
            data, sample_rate = _decode_wav_stdlib(audio_bytes)
        except DecodeError:
            raise
        except Exception as wav_err:
            raise DecodeError(str(wav_err)) from wav_err

    if data.shape[0] == 0:
        raise DecodeError("audio has no frames")

    channels = tuple(np.ascontiguousarray(data[:, ch]) for ch in range(data.shape[1]))
    buffer = AudioBuffer(channels=channels, sample_rate=int(sample_rate))

    logger.debug(
        "audio_decoded",
        channels=buffer.num_channels,
        samples=buffer.num_samples,
        sample_rate=buffer.sample_rate,
        duration_s=round(buffer.duration_s, 3),
    )

    return buffer


def probe_duration(audio_bytes: bytes) -> float:
    """Return the duration in seconds, reading only the header when possible.

    Falls back to a full decode when the container does not record a frame
    count (e.g. some streamed OGG files).

    Raises:
        DecodeError: If the audio cannot be read at all.
    """
    if not audio_bytes:
        raise DecodeError("empty audio (0 bytes)")

    try:
        info = sf.info(io.BytesIO(audio_bytes))
    except Exception:
        info = None

    if info is not None and info.frames > 0 and info.samplerate > 0:
        return float(info.frames) / float(info.samplerate)

    return decode_audio(audio_bytes).duration_s


def _decode_wav_stdlib(audio_bytes: bytes) -> tuple[np.ndarray, int]:
    """Decode WAV PCM using wave stdlib as fallback.

    Returns:
        Tuple (float32 array shaped (frames, channels), sample rate).

    Raises:
        DecodeError: If the WAV is invalid or uses a non-PCM format.
    """
    try:
        with wave.open(io.BytesIO(audio_bytes), "rb") as wf:
            n_channels = wf.getnchannels()
            sampwidth = wf.getsampwidth()
            sample_rate = wf.getframerate()
            n_frames = wf.getnframes()

            if n_frames == 0:
                raise DecodeError("WAV file has no audio frames")

            raw_data = wf.readframes(n_frames)
    except (wave.Error, EOFError) as err:
        raise DecodeError(f"invalid WAV file: {err}") from err

    if sampwidth == 2:
        data = np.frombuffer(raw_data, dtype=np.int16).astype(np.float32) / PCM_INT16_SCALE
    elif sampwidth == 1:
        data = np.frombuffer(raw_data, dtype=np.uint8).astype(np.float32) / PCM_UINT8_SCALE - 1.0
    else:
        raise DecodeError(f"sample width {sampwidth} bytes not supported (expected 1 or 2)")

    return data.reshape(-1, n_channels), sample_rate


def write_wav(path: str, audio: AudioBuffer) -> None:
    """Write a mono buffer to ``path`` as 32-bit float WAV.

    Float samples are written as-is so the engine reads back exactly the
    normalized signal.
    """
    sf.write(path, audio.samples, audio.sample_rate, format="WAV", subtype="FLOAT")


@contextlib.contextmanager
def transient_wav(audio: AudioBuffer) -> Iterator[str]:
    """Materialize a mono buffer as a temporary WAV file and yield its path.

    The file is removed on exit, whether the body returned or raised.
    """
    fd, path = tempfile.mkstemp(prefix="murmur-", suffix=".wav")
    os.close(fd)
    try:
        write_wav(path, audio)
        yield path
    finally:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(path)
