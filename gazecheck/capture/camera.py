from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Optional, Protocol, Tuple

import cv2
import numpy as np

from ..errors import CameraError, ExtractionError

logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    """The subset of ``cv2.VideoCapture`` the capture session relies on."""

    def isOpened(self) -> bool:
        ...

    def read(self) -> Tuple[bool, Optional[np.ndarray]]:
        ...

    def release(self) -> None:
        ...


# -------------------------
# Camera
# -------------------------

def open_camera(index: int = 0, width: int = 1280, height: int = 720) -> cv2.VideoCapture:
    """Open a camera and suggest a resolution. The driver may pick another one."""
    cap = cv2.VideoCapture(index)
    if not cap.isOpened():
        cap.release()
        raise CameraError(
            f"Unable to access camera {index}. Check that a device is connected and permissions are granted."
        )
    cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
    logger.info(
        "Camera %d opened at %dx%d",
        index,
        int(cap.get(cv2.CAP_PROP_FRAME_WIDTH) or 0),
        int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0),
    )
    return cap


# -------------------------
# Video I/O
# -------------------------

class VideoReader:
    def __init__(self, path: str | Path):
        self.path = str(path)
        self.cap = cv2.VideoCapture(self.path)
        if not self.cap.isOpened():
            self.cap.release()
            raise ExtractionError(f"Video loading failed: {self.path}")
        self._width = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)
        self._height = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)
        self._raw_fps = float(self.cap.get(cv2.CAP_PROP_FPS) or 0.0)
        self._frame_count = float(self.cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0.0)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def fps(self) -> float:
        fps = self._raw_fps
        return fps if fps > 0 and math.isfinite(fps) else 30.0

    @property
    def duration(self) -> Optional[float]:
        """Duration in seconds, or None when the container does not report a usable one.

        Browser-recorded WebM files commonly report no frame count at all.
        """
        fps, n = self._raw_fps, self._frame_count
        if not (math.isfinite(fps) and math.isfinite(n)) or fps <= 0 or n <= 0:
            return None
        return n / fps

    def seek(self, seconds: float) -> None:
        self.cap.set(cv2.CAP_PROP_POS_FRAMES, int(round(seconds * self.fps)))

    def read(self) -> Tuple[bool, Optional[np.ndarray]]:
        return self.cap.read()

    def release(self) -> None:
        self.cap.release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False


class VideoRecorder:
    """Writes camera frames to disk. The writer opens on the first frame, once the size is known."""

    def __init__(self, path: str | Path, fps: float, *, fourcc: str = "MJPG"):
        self.path = Path(path)
        self._fps = float(fps)
        self._fourcc = fourcc
        self._size: Optional[Tuple[int, int]] = None
        self.writer: Optional[cv2.VideoWriter] = None
        self.frames_written = 0

    def _open(self, size: Tuple[int, int]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        code = cv2.VideoWriter_fourcc(*self._fourcc)
        self.writer = cv2.VideoWriter(str(self.path), code, self._fps, size)
        if not self.writer.isOpened():
            self.writer = None
            raise RuntimeError(f"Failed to open writer: {self.path}")
        self._size = size

    def write(self, frame: np.ndarray) -> None:
        if frame is None:
            return
        if frame.ndim == 2:
            frame = cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
        h, w = frame.shape[:2]
        if self.writer is None:
            self._open((w, h))
        elif (w, h) != self._size:
            frame = cv2.resize(frame, self._size)
        self.writer.write(frame)
        self.frames_written += 1

    def release(self) -> None:
        if self.writer is not None:
            self.writer.release()
            self.writer = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False
