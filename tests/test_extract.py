from __future__ import annotations

import numpy as np
import pytest

from gazecheck.capture import VideoReader, VideoRecorder, decode_frame, extract_frames, seek_positions
from gazecheck.errors import ExtractionError


def _write_video(path, n_frames=20, fps=10.0):
    # Frame i is a flat image of brightness i * 10 so positions can be read back.
    with VideoRecorder(path, fps=fps, fourcc="MJPG") as rec:
        for i in range(n_frames):
            rec.write(np.full((48, 64, 3), i * 10, dtype=np.uint8))
    return path


def _brightness(frame):
    return float(decode_frame(frame.data_uri).mean())


def test_seek_positions_are_evenly_spaced():
    assert seek_positions(2.0, 4) == [0.0, 0.5, 1.0, 1.5]
    assert seek_positions(3.0, 1) == [0.0]


def test_reader_reports_duration(tmp_path):
    path = _write_video(tmp_path / "clip.avi")
    with VideoReader(path) as reader:
        assert reader.duration == pytest.approx(2.0, abs=0.15)


def test_extraction_seeks_to_even_positions(tmp_path):
    path = _write_video(tmp_path / "clip.avi")
    frames = extract_frames(path, 4)

    assert [f.timestamp_sec for f in frames] == [0.0, 0.5, 1.0, 1.5]
    for frame, expected in zip(frames, (0, 50, 100, 150)):
        assert _brightness(frame) == pytest.approx(expected, abs=12)


def test_extraction_without_duration_samples_the_fallback_window(tmp_path, monkeypatch):
    path = _write_video(tmp_path / "clip.avi")
    monkeypatch.setattr(VideoReader, "duration", property(lambda self: None))

    frames = extract_frames(path, 4, fallback_window=2.0)
    assert [f.timestamp_sec for f in frames] == [0.0, 0.5, 1.0, 1.5]


def test_short_fallback_window_yields_fewer_frames(tmp_path, monkeypatch):
    path = _write_video(tmp_path / "clip.avi")
    monkeypatch.setattr(VideoReader, "duration", property(lambda self: None))

    frames = extract_frames(path, 4, fallback_window=0.25)
    assert 1 <= len(frames) < 4
    assert all(f.timestamp_sec < 0.25 for f in frames)


def test_missing_file_fails(tmp_path):
    with pytest.raises(ExtractionError):
        extract_frames(tmp_path / "nope.webm", 4)


def test_garbage_file_fails(tmp_path):
    path = tmp_path / "broken.webm"
    path.write_bytes(b"not a video at all" * 10)
    with pytest.raises(ExtractionError):
        extract_frames(path, 4)


def test_frame_count_must_be_positive(tmp_path):
    with pytest.raises(ValueError):
        extract_frames(tmp_path / "clip.avi", 0)
