"""PyTorch device and dtype helpers for the transformers engine.

Safe to call when torch is not installed: "auto" then resolves to CPU.
"""

from __future__ import annotations

from typing import Any

from murmur.logging import get_logger

logger = get_logger("engine.torch_utils")


def resolve_device(device_str: str) -> str:
    """Resolve device string, probing accelerator availability for "auto".

    Args:
        device_str: One of "auto", "cpu", "cuda", "cuda:N" or "mps".

    Returns:
        "auto" becomes "cuda:0" if CUDA is available, then "mps" if Apple
        Metal is available, otherwise "cpu". All other values pass through.
    """
    if device_str != "auto":
        return device_str

    try:
        import torch
    except ImportError:
        return "cpu"

    if torch.cuda.is_available():
        return "cuda:0"
    mps = getattr(torch.backends, "mps", None)
    if mps is not None and mps.is_available():
        return "mps"
    return "cpu"


def resolve_dtype(dtype: str) -> Any:
    """Map a dtype name to a torch dtype; "auto" passes through as a string.

    Raises:
        ValueError: If torch has no dtype with that name.
    """
    if dtype == "auto":
        return "auto"

    import torch

    resolved = getattr(torch, dtype, None)
    if not isinstance(resolved, torch.dtype):
        msg = f"Unknown torch dtype '{dtype}'"
        raise ValueError(msg)
    return resolved


def configure_torch_inference() -> None:
    """Disable autograd process-wide; the runtime only does inference."""
    try:
        import torch
    except ImportError:
        return

    torch.set_grad_enabled(False)
    logger.info("torch_inference_configured", grad_enabled=False)
