"""
Timed webcam capture.

A recording runs three things side by side for a fixed window:

- a recorder thread that reads the camera, writes the fallback recording and
  keeps the latest frame,
- a sampler that encodes the latest frame every ``duration / frame_count``
  seconds (at most ``frame_count`` times),
- a countdown that reports the remaining whole seconds once per second.

A single deadline (or :meth:`CaptureSession.cancel`) stops all of them,
releases the camera and freezes the sampled frames.
"""
from __future__ import annotations

import logging
import math
import os
import tempfile
import threading
import time
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import cv2
import numpy as np

from ..config import CaptureConfig
from .camera import FrameSource, VideoRecorder, open_camera
from .encode import SampledFrame, encode_frame

logger = logging.getLogger(__name__)

SourceFactory = Callable[[CaptureConfig], FrameSource]

# How long finalize waits for worker threads before releasing the camera anyway.
JOIN_TIMEOUT = 1.0

# Countdown period; the counter reports whole seconds left.
COUNTDOWN_SECONDS = 1.0


def default_source_factory(config: CaptureConfig) -> FrameSource:
    return open_camera(config.camera_index, config.width, config.height)


@dataclass(frozen=True)
class CaptureResult:
    frames: Tuple[SampledFrame, ...]
    recording: Optional[Path]
    target: int
    cancelled: bool = False
    elapsed: float = 0.0

    @property
    def data_uris(self) -> List[str]:
        return [f.data_uri for f in self.frames]

    @property
    def shortfall(self) -> int:
        return max(0, self.target - len(self.frames))


class RepeatingTask:
    """Call ``fn`` every ``interval`` seconds on a daemon thread.

    The first call happens after ``initial_delay`` (defaults to ``interval``).
    The task ends when ``stop()`` is called or ``fn`` returns False.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        fn: Callable[[], bool],
        *,
        initial_delay: Optional[float] = None,
    ):
        self.name = name
        self.interval = float(interval)
        self.initial_delay = self.interval if initial_delay is None else float(initial_delay)
        self._fn = fn
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def _run(self) -> None:
        delay = self.initial_delay
        while not self._stop.wait(delay):
            try:
                keep_going = self._fn()
            except Exception:
                logger.exception("%s tick failed", self.name)
                keep_going = True
            if keep_going is False:
                break
            delay = self.interval

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread.is_alive():
            self._thread.join(timeout)

    @property
    def running(self) -> bool:
        return self._thread.is_alive()


class CaptureSession:
    """One timed recording. Not reusable: create a new session per attempt."""

    def __init__(
        self,
        config: Optional[CaptureConfig] = None,
        *,
        source_factory: Optional[SourceFactory] = None,
        recording_path: Optional[Path] = None,
        on_tick: Optional[Callable[[int], None]] = None,
        record_fps: float = 30.0,
    ):
        self.config = config or CaptureConfig()
        self._source_factory = source_factory or default_source_factory
        self._recording_path = recording_path
        self._on_tick = on_tick
        self._record_fps = record_fps

        self._cancel = threading.Event()
        self._stop_recorder = threading.Event()
        self._lock = threading.Lock()
        self._latest: Optional[np.ndarray] = None
        self._live = False
        self._frames: List[SampledFrame] = []
        self._ticks = 0
        self._remaining = int(math.ceil(self.config.duration))
        self._started_at = 0.0
        self._started = False

    # -------------------------
    # Public API
    # -------------------------

    def cancel(self) -> None:
        """Stop a running recording early; safe to call from any thread."""
        self._cancel.set()

    @property
    def remaining(self) -> int:
        return self._remaining

    def run(self) -> CaptureResult:
        if self._started:
            raise RuntimeError("CaptureSession.run() may only be called once")
        self._started = True
        cfg = self.config

        # Acquire first; CameraError propagates before anything else starts.
        source = self._source_factory(cfg)

        path = self._recording_path or _temp_recording_path(cfg.fourcc)
        recorder = VideoRecorder(path, fps=self._record_fps, fourcc=cfg.fourcc)
        self._live = True
        self._started_at = time.monotonic()

        recorder_thread = threading.Thread(
            target=self._record_loop, args=(source, recorder), name="gaze-recorder", daemon=True
        )
        sampler = RepeatingTask(
            "gaze-sampler",
            cfg.sample_interval,
            self._sample,
            initial_delay=cfg.sample_interval / 2.0,
        )
        countdown = RepeatingTask("gaze-countdown", COUNTDOWN_SECONDS, self._countdown)

        cancelled = False
        try:
            recorder_thread.start()
            sampler.start()
            countdown.start()
            self._emit_tick()
            logger.info("Recording %.1fs, sampling %d frames", cfg.duration, cfg.frame_count)
            cancelled = self._cancel.wait(cfg.duration)
        finally:
            sampler.stop()
            countdown.stop()
            self._stop_recorder.set()
            sampler.join(JOIN_TIMEOUT)
            countdown.join(JOIN_TIMEOUT)
            recorder_thread.join(JOIN_TIMEOUT)
            self._live = False
            recorder.release()
            source.release()
            logger.info("Recording stopped, camera released")

        elapsed = time.monotonic() - self._started_at
        with self._lock:
            frames = tuple(self._frames)
        recording = path if recorder.frames_written > 0 else None
        if recording is None:
            logger.warning("No video was recorded")
            _unlink(path)

        result = CaptureResult(
            frames=frames,
            recording=recording,
            target=cfg.frame_count,
            cancelled=cancelled,
            elapsed=elapsed,
        )
        logger.info("Finished recording. Captured %d frames.", len(frames))
        if cancelled:
            logger.info("Recording cancelled after %.2fs", elapsed)
        elif result.shortfall:
            msg = (
                f"Attempted to capture {cfg.frame_count} frames, but only got {len(frames)}. "
                "Analysis might be affected."
            )
            logger.warning(msg)
            warnings.warn(msg, RuntimeWarning)
        return result

    # -------------------------
    # Workers
    # -------------------------

    def _record_loop(self, source: FrameSource, recorder: VideoRecorder) -> None:
        writing = True
        while not self._stop_recorder.is_set():
            ok, frame = source.read()
            if not ok or frame is None:
                logger.warning("Camera stopped delivering frames")
                self._live = False
                return
            with self._lock:
                self._latest = frame
            if not writing:
                continue
            try:
                recorder.write(frame)
            except RuntimeError as e:
                # Sampling still works without the fallback recording.
                logger.error("Recording disabled: %s", e)
                writing = False

    def _sample(self) -> bool:
        self._ticks += 1
        with self._lock:
            frame = self._latest
        if not self._live or frame is None:
            logger.warning("Stream or video not ready for frame capture, skipping.")
        else:
            try:
                data_uri = encode_frame(frame, self.config.jpeg_quality)
            except (ValueError, cv2.error) as e:
                logger.warning("Failed to capture frame %d: %s", self._ticks, e)
            else:
                stamp = time.monotonic() - self._started_at
                with self._lock:
                    self._frames.append(SampledFrame(data_uri=data_uri, timestamp_sec=round(stamp, 3)))
                logger.debug("Captured frame %d/%d", len(self._frames), self.config.frame_count)
        return self._ticks < self.config.frame_count

    def _countdown(self) -> bool:
        self._remaining = max(0, self._remaining - 1)
        self._emit_tick()
        return self._remaining > 0

    def _emit_tick(self) -> None:
        if self._on_tick is not None:
            self._on_tick(self._remaining)


def _temp_recording_path(fourcc: str) -> Path:
    suffix = ".avi" if fourcc.upper() in ("MJPG", "XVID") else ".mp4"
    fd, name = tempfile.mkstemp(prefix="gazecheck-", suffix=suffix)
    # cv2.VideoWriter opens the path itself
    os.close(fd)
    return Path(name)


def _unlink(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
