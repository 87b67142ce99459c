"""murmur — local speech-to-text with audio normalization and a single managed engine."""

from __future__ import annotations

__version__ = "0.1.0"
