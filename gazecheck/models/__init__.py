from __future__ import annotations

from .base import BackendSpec, GazeModel, normalize_verdicts
from .registry import available_backends, backend_spec, get_gaze_model

__all__ = [
    "BackendSpec",
    "GazeModel",
    "available_backends",
    "backend_spec",
    "get_gaze_model",
    "normalize_verdicts",
]
