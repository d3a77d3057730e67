"""
gazecheck

Record a short webcam clip, sample a few frames and ask a hosted multimodal
model whether the subject's gaze is on the camera in each frame.

- ``gazecheck.server``: FastAPI proxy (``POST /api/gaze``) plus the browser page.
- ``gazecheck.capture``: OpenCV capture session and fallback frame extraction.
- ``gazecheck.client``: HTTP client and the record/analyze/restart session.
"""
from __future__ import annotations

from typing import Any

from .errors import AnalysisError, CameraError, ExtractionError, GazeCheckError, ModelCallError
from .models import available_backends, get_gaze_model
from .schemas import GazeJudgment, Summary, summarize

__all__ = [
    "AnalysisError",
    "CameraError",
    "ExtractionError",
    "GazeCheckError",
    "GazeJudgment",
    "ModelCallError",
    "Summary",
    "available_backends",
    "create_app",
    "get_gaze_model",
    "summarize",
    "__version__",
]

__version__ = "0.1.0"


def create_app(*args: Any, **kwargs: Any):
    """Lazy proxy to :func:`gazecheck.server.create_app`."""
    from .server import create_app as _impl

    return _impl(*args, **kwargs)
