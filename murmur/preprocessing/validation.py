"""Pre-decode audio gate.

Rejects oversized or overlong audio before the expensive decode and
inference work. The validator reports problems through ValidationResult
and never raises.
"""

from __future__ import annotations

from murmur._audio_constants import BYTES_PER_MB
from murmur._types import ValidationResult
from murmur.logging import get_logger
from murmur.preprocessing.audio_io import probe_duration

logger = get_logger("preprocessing.validation")

UNREADABLE_AUDIO_REASON = (
    "Unsupported or unreadable audio. Check that the file is a supported audio format."
)


class AudioValidator:
    """Size and duration policy for incoming audio."""

    def validate(
        self,
        audio_bytes: bytes,
        max_size_mb: float,
        max_duration_s: float,
    ) -> ValidationResult:
        """Check ``audio_bytes`` against the size and duration limits.

        Size is checked first (1 MB = 1,048,576 bytes) so oversized input
        is rejected without touching the decoder.
        """
        size_bytes = len(audio_bytes)
        size_mb = size_bytes / BYTES_PER_MB
        if size_mb > max_size_mb:
            reason = (
                f"File is too large. Maximum supported size is {max_size_mb:g}MB "
                f"(current: {size_mb:.2f}MB)"
            )
            logger.info("audio_rejected", check="size", size_mb=round(size_mb, 2))
            return ValidationResult(valid=False, reason=reason, size_bytes=size_bytes)

        try:
            duration_s = probe_duration(audio_bytes)
        except Exception as exc:
            logger.info("audio_rejected", check="decode", error=str(exc))
            return ValidationResult(
                valid=False, reason=UNREADABLE_AUDIO_REASON, size_bytes=size_bytes
            )

        if duration_s > max_duration_s:
            reason = (
                f"Audio is too long. Maximum supported duration is {max_duration_s:g}s "
                f"(current: {duration_s:.2f}s)"
            )
            logger.info("audio_rejected", check="duration", duration_s=round(duration_s, 2))
            return ValidationResult(
                valid=False, reason=reason, size_bytes=size_bytes, duration_s=duration_s
            )

        return ValidationResult(valid=True, size_bytes=size_bytes, duration_s=duration_s)
