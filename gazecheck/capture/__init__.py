from __future__ import annotations

from .camera import FrameSource, VideoReader, VideoRecorder, open_camera
from .encode import SampledFrame, decode_frame, encode_frame
from .extract import extract_frames, seek_positions
from .session import CaptureResult, CaptureSession, RepeatingTask

__all__ = [
    "CaptureResult",
    "CaptureSession",
    "FrameSource",
    "RepeatingTask",
    "SampledFrame",
    "VideoReader",
    "VideoRecorder",
    "decode_frame",
    "encode_frame",
    "extract_frames",
    "open_camera",
    "seek_positions",
]
