from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from ..errors import ExtractionError
from .camera import VideoReader
from .encode import SampledFrame, encode_frame

logger = logging.getLogger(__name__)

FALLBACK_WINDOW = 2.0


def seek_positions(duration: float, frame_count: int) -> List[float]:
    """Evenly spaced timestamps ``i * duration / frame_count`` for ``i in [0, frame_count)``."""
    step = float(duration) / float(frame_count)
    return [i * step for i in range(frame_count)]


def _extract_by_seeking(reader: VideoReader, frame_count: int, duration: float, quality: int) -> List[SampledFrame]:
    frames: List[SampledFrame] = []
    decoded_any = False
    for t in seek_positions(duration, frame_count):
        if t >= duration:
            break
        reader.seek(t)
        ok, frame = reader.read()
        if not ok or frame is None:
            logger.warning("No frame at %.2fs, skipping", t)
            continue
        decoded_any = True
        frames.append(SampledFrame(data_uri=encode_frame(frame, quality), timestamp_sec=round(t, 3)))
        logger.debug("Captured frame %d at time %.2fs", len(frames), t)
    if not decoded_any:
        raise ExtractionError(f"Video decoding failed: {reader.path}")
    return frames


def _extract_over_time(reader: VideoReader, frame_count: int, window: float, quality: int) -> List[SampledFrame]:
    """Play the video from the start and grab a frame every ``window / frame_count`` seconds of media time."""
    interval = float(window) / float(frame_count)
    fps = reader.fps
    frames: List[SampledFrame] = []
    next_t = 0.0
    index = 0
    while len(frames) < frame_count:
        ok, frame = reader.read()
        if not ok or frame is None:
            break
        t = index / fps
        index += 1
        if t >= window:
            break
        if t + 1e-9 >= next_t:
            frames.append(SampledFrame(data_uri=encode_frame(frame, quality), timestamp_sec=round(t, 3)))
            logger.debug("Time-based capture: frame %d at %.2fs", len(frames), t)
            next_t += interval
    if index == 0:
        raise ExtractionError(f"Video decoding failed: {reader.path}")
    return frames


def extract_frames(
    path: str | Path,
    frame_count: int,
    *,
    fallback_window: float = FALLBACK_WINDOW,
    jpeg_quality: int = 90,
) -> List[SampledFrame]:
    """Re-extract frames from a finished recording.

    Seeks to evenly spaced timestamps when the container reports a usable
    duration; otherwise samples over ``fallback_window`` seconds of playback.
    May return fewer than ``frame_count`` frames. Raises
    :class:`ExtractionError` when the file cannot be opened or decoded.
    """
    if frame_count <= 0:
        raise ValueError("frame_count must be positive")

    with VideoReader(path) as reader:
        duration = reader.duration
        logger.info(
            "Video metadata loaded. Duration: %s, Size: %dx%d",
            f"{duration:.2f}s" if duration is not None else "unknown",
            reader.width,
            reader.height,
        )
        if duration is None:
            logger.warning("Invalid duration, using time-based frame capture")
            frames = _extract_over_time(reader, frame_count, fallback_window, jpeg_quality)
        else:
            frames = _extract_by_seeking(reader, frame_count, duration, jpeg_quality)

    logger.info("Extracted %d/%d frames from %s", len(frames), frame_count, path)
    return frames
