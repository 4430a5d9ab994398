"""Trace recording for chat-completion calls.

Traces hold message roles and sizes only; message content can carry patient
data and is never written.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from .config import ProviderConfig, compute_config_hash
from .response import GenerationRequest


def _trace_file(trace_dir: Path, request_id: str) -> Path:
    dated = Path(trace_dir) / datetime.now().strftime("%Y%m%d")
    dated.mkdir(parents=True, exist_ok=True)
    return dated / f"{request_id}.json"


def _base_trace(request: GenerationRequest, config: ProviderConfig, elapsed_ms: int) -> dict[str, Any]:
    return {
        "request_id": request.request_id,
        "timestamp": datetime.now().isoformat(),
        "provider": config.provider,
        "model_candidates": list(config.model_candidates),
        "config_hash": compute_config_hash(config),
        "request": {
            "messages": [
                {"role": m["role"], "chars": len(m["content"])} for m in request.messages
            ],
            "max_retries": request.max_retries,
            "timeout_s": request.timeout_s,
        },
        "elapsed_ms": elapsed_ms,
    }


def record_trace(
    request: GenerationRequest,
    text: str,
    config: ProviderConfig,
    elapsed_ms: int,
    trace_dir: Path,
) -> Path:
    """Record a successful call.

    Args:
        request: Request data
        text: Response text (only its length is stored)
        config: Provider configuration used
        elapsed_ms: Call duration
        trace_dir: Root trace directory

    Returns:
        Path to trace file
    """
    trace_data = _base_trace(request, config, elapsed_ms)
    trace_data["response"] = {"chars": len(text)}
    trace_data["success"] = True

    trace_file = _trace_file(trace_dir, request.request_id)
    with open(trace_file, "w") as f:
        json.dump(trace_data, f, indent=2)
    return trace_file


def record_error_trace(
    request: GenerationRequest,
    error: Exception,
    config: ProviderConfig,
    elapsed_ms: int,
    trace_dir: Path,
) -> Path:
    """Record a failed call.

    Returns:
        Path to trace file
    """
    trace_data = _base_trace(request, config, elapsed_ms)
    trace_data["error"] = {
        "type": type(error).__name__,
        "message": str(error),
        "status_code": getattr(error, "status_code", None),
    }
    trace_data["success"] = False

    trace_file = _trace_file(trace_dir, request.request_id)
    with open(trace_file, "w") as f:
        json.dump(trace_data, f, indent=2)
    return trace_file
