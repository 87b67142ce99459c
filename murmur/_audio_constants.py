"""Centralized audio format constants for the murmur runtime.

Single source of truth for PCM format parameters and the sample rate the
recognition model expects. Shared by preprocessing, validation, the
orchestrator's metrics and the CLI.
"""

from __future__ import annotations

# --- PCM 16-bit format ---
# Scale factor for float32 <-> int16 conversion.
# int16 / 32768.0 maps to [-1.0, ~0.99997].
PCM_INT16_SCALE: float = 32768.0

# PCM 8-bit (unsigned): midpoint 128 maps to 0.0.
PCM_UINT8_SCALE: float = 128.0

BYTES_PER_SAMPLE_INT16: int = 2

# --- Sample rates ---
# Whisper-family models consume 16kHz mono float32.
STT_SAMPLE_RATE: int = 16000

# --- Size units ---
BYTES_PER_MB: int = 1024 * 1024

# --- Duration estimate ---
# Byte-size duration estimate assumes 16kHz, 16-bit, mono. Only a fallback
# when no decoded sample count is available.
ESTIMATE_BYTES_PER_SECOND: int = STT_SAMPLE_RATE * BYTES_PER_SAMPLE_INT16

# --- Request defaults ---
DEFAULT_MAX_FILE_SIZE_MB: int = 50
DEFAULT_MAX_DURATION_S: float = 300.0
