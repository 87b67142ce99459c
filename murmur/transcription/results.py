"""Normalizes the engine's heterogeneous result shapes."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from murmur._types import TimestampChunk, TranscriptionResult


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _to_chunk(raw: Any) -> TimestampChunk:
    timestamp = _field(raw, "timestamp")
    if timestamp is not None and len(timestamp) == 2:
        start, end = timestamp
    else:
        start, end = _field(raw, "start"), _field(raw, "end")
    return TimestampChunk(
        start=float(start) if start is not None else 0.0,
        # The last chunk of a truncated generation may have no end time.
        end=float(end) if end is not None else None,
        text=str(_field(raw, "text") or ""),
    )


def normalize_engine_output(output: Any, *, include_chunks: bool = True) -> TranscriptionResult:
    """Convert a plain string or a ``{text, chunks}`` result to TranscriptionResult.

    Text is trimmed; chunk text is kept as the engine produced it.

    Raises:
        TypeError: If ``output`` is neither a string nor carries ``text``.
        ValueError: If a chunk timestamp is not numeric.
    """
    if isinstance(output, str):
        return TranscriptionResult(text=output.strip())

    if output is None or (not isinstance(output, Mapping) and not hasattr(output, "text")):
        msg = f"Unexpected engine result of type {type(output).__name__}"
        raise TypeError(msg)

    text = str(_field(output, "text") or "").strip()
    raw_chunks = _field(output, "chunks")

    chunks: tuple[TimestampChunk, ...] | None = None
    if include_chunks and isinstance(raw_chunks, Sequence) and not isinstance(raw_chunks, str):
        chunks = tuple(_to_chunk(c) for c in raw_chunks)

    return TranscriptionResult(text=text, chunks=chunks)
