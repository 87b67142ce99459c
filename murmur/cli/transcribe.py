"""`murmur transcribe` — run a local transcription and print the result."""

from __future__ import annotations

import asyncio
import json
import sys
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
import pydantic

from murmur.cli.main import cli
from murmur.config.settings import get_settings
from murmur.exceptions import MurmurError
from murmur.journal import LogJournal, downgrade_matching
from murmur.models.requests import TranscriptionRequest, coerce_request
from murmur.service import TranscriptionService

if TYPE_CHECKING:
    from murmur._types import LogEntry, PerformanceMetrics, TranscriptionResult

# ONNX Runtime reports shape ops pinned to CPU as a warning; that is expected.
_BENIGN_BACKEND_WARNINGS = r"onnxruntime.*VerifyEachNodeIsAssignedToAnEp"


def format_chunk_line(start: float, end: float | None, text: str) -> str:
    end_str = f"{end:.2f}s" if end is not None else "?"
    return f"[{start:.2f}s - {end_str}] {text.strip()}"


def format_log_line(entry: LogEntry) -> str:
    stamp = datetime.fromtimestamp(entry.timestamp).strftime("%H:%M:%S.%f")[:-3]
    return f"{stamp} {entry.level.value.upper():<5} {entry.message}"


def build_options(
    *,
    language: str | None,
    task: str | None,
    timestamps: str,
    chunk_length: float | None,
    stride: float | None,
    max_new_tokens: int | None,
    beams: int | None,
    temperature: tuple[float, ...],
    condition_on_prev: bool | None,
    compression_ratio_threshold: float | None,
    logprob_threshold: float | None,
    no_speech_threshold: float | None,
) -> dict[str, Any]:
    """Collect CLI flags into a request option map, skipping unset ones."""
    generate: dict[str, Any] = {
        "max_new_tokens": max_new_tokens,
        "num_beams": beams,
        "condition_on_prev_tokens": condition_on_prev,
        "compression_ratio_threshold": compression_ratio_threshold,
        "logprob_threshold": logprob_threshold,
        "no_speech_threshold": no_speech_threshold,
    }
    if temperature:
        generate["temperature"] = temperature[0] if len(temperature) == 1 else list(temperature)

    options: dict[str, Any] = {
        "return_timestamps": timestamps,
        "language": language,
        "task": task,
        "chunk_length_s": chunk_length,
        "stride_length_s": stride,
    }
    generate = {k: v for k, v in generate.items() if v is not None}
    if generate:
        options["generate_kwargs"] = generate
    return {k: v for k, v in options.items() if v is not None}


def _describe_validation_error(exc: pydantic.ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    )


def _render_text(result: TranscriptionResult) -> None:
    click.echo(result.text)
    if result.chunks:
        click.echo("")
        for chunk in result.chunks:
            click.echo(format_chunk_line(chunk.start, chunk.end, chunk.text))


def _render_metrics(metrics: PerformanceMetrics | None) -> None:
    if metrics is None:
        return
    click.echo("", err=True)
    click.echo(f"Processing time: {metrics.processing_time_s:.2f}s", err=True)
    click.echo(
        f"Audio duration:  {metrics.audio_duration_s:.2f}s ({metrics.duration_source})", err=True
    )
    click.echo(f"Realtime factor: {metrics.realtime_factor:.2f}x", err=True)
    click.echo(f"Device:          {metrics.device}", err=True)
    click.echo(f"Model:           {metrics.model_id}", err=True)


async def _run(
    file_path: Path,
    request: TranscriptionRequest,
    *,
    model: str | None,
    device: str | None,
    validate: bool,
) -> tuple[TranscriptionService, TranscriptionResult | None]:
    settings = get_settings()
    model_overrides = {
        k: v for k, v in {"model_id": model, "device": device}.items() if v is not None
    }
    if model_overrides:
        settings = settings.model_copy(
            update={"model": settings.model.model_copy(update=model_overrides)}
        )
    if not validate:
        settings = settings.model_copy(
            update={
                "validation": settings.validation.model_copy(
                    update={"enable_memory_check": False}
                )
            }
        )

    journal = LogJournal(remap=downgrade_matching(_BENIGN_BACKEND_WARNINGS))
    service = TranscriptionService.from_settings(settings, journal=journal)
    try:
        await service.ensure_loaded()
        result = await service.transcribe(file_path, request)
    except MurmurError as exc:
        click.echo(f"Error: {exc}", err=True)
        return service, None
    finally:
        service.close()
    return service, result


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--model", "-m", default=None, help="Model id (default: MURMUR_MODEL_ID).")
@click.option("--device", default=None, help="auto, cpu, cuda, cuda:N or mps.")
@click.option("--language", "-l", default=None, help="ISO 639-1 code or language name.")
@click.option("--task", type=click.Choice(["transcribe", "translate"]), default=None)
@click.option(
    "--timestamps",
    type=click.Choice(["none", "sentence", "word"]),
    default="none",
    show_default=True,
)
@click.option("--chunk-length", type=float, default=None, help="Long-form chunk length (s).")
@click.option("--stride", type=float, default=None, help="Chunk overlap (s).")
@click.option("--max-new-tokens", type=int, default=None)
@click.option("--beams", type=int, default=None, help="Beam count (1 = greedy).")
@click.option(
    "--temperature",
    type=float,
    multiple=True,
    help="Repeat for a fallback schedule, e.g. --temperature 0 --temperature 0.2.",
)
@click.option("--condition-on-prev/--no-condition-on-prev", default=None)
@click.option("--compression-ratio-threshold", type=float, default=None)
@click.option("--logprob-threshold", type=float, default=None)
@click.option("--no-speech-threshold", type=float, default=None)
@click.option("--no-validate", is_flag=True, help="Skip the size/duration gate.")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
@click.option("--show-metrics", is_flag=True, help="Print performance metrics to stderr.")
@click.option("--show-logs", is_flag=True, help="Print the transcription log to stderr.")
def transcribe(
    file: Path,
    model: str | None,
    device: str | None,
    language: str | None,
    task: str | None,
    timestamps: str,
    chunk_length: float | None,
    stride: float | None,
    max_new_tokens: int | None,
    beams: int | None,
    temperature: tuple[float, ...],
    condition_on_prev: bool | None,
    compression_ratio_threshold: float | None,
    logprob_threshold: float | None,
    no_speech_threshold: float | None,
    no_validate: bool,
    as_json: bool,
    show_metrics: bool,
    show_logs: bool,
) -> None:
    """Transcribe an audio file with the local model."""
    options = build_options(
        language=language,
        task=task,
        timestamps=timestamps,
        chunk_length=chunk_length,
        stride=stride,
        max_new_tokens=max_new_tokens,
        beams=beams,
        temperature=temperature,
        condition_on_prev=condition_on_prev,
        compression_ratio_threshold=compression_ratio_threshold,
        logprob_threshold=logprob_threshold,
        no_speech_threshold=no_speech_threshold,
    )

    try:
        request = coerce_request(options)
    except pydantic.ValidationError as exc:
        click.echo(f"Error: invalid options: {_describe_validation_error(exc)}", err=True)
        sys.exit(1)

    service, result = asyncio.run(
        _run(file, request, model=model, device=device, validate=not no_validate)
    )

    if result is not None:
        if as_json:
            click.echo(json.dumps(asdict(result), indent=2, ensure_ascii=False))
        else:
            _render_text(result)

    if show_metrics:
        _render_metrics(service.performance_metrics)
    if show_logs:
        click.echo("", err=True)
        for entry in service.logs:
            click.echo(format_log_line(entry), err=True)

    if result is None:
        sys.exit(1)
