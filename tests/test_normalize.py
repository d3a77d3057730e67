from __future__ import annotations

import logging

from gazecheck.models import normalize_verdicts
from gazecheck.schemas import FrameVerdict, GazeJudgment, summarize


def _v(frame, gaze=True, confidence=80.0, eyes=False):
    return FrameVerdict(frame=frame, gaze=gaze, eyesClosed=eyes, confidence=confidence)


def test_orders_by_frame():
    out = normalize_verdicts([_v(3), _v(1), _v(2)], 3)
    assert [j.frame for j in out] == [1, 2, 3]


def test_drops_out_of_range_and_keeps_first_duplicate():
    out = normalize_verdicts([_v(0), _v(1, gaze=False), _v(1, gaze=True), _v(5)], 2)
    assert len(out) == 1
    assert out[0].frame == 1 and out[0].gaze is False


def test_clamps_confidence():
    out = normalize_verdicts([_v(1, confidence=140), _v(2, confidence=-3)], 2)
    assert [j.confidence for j in out] == [100.0, 0.0]


def test_missing_frames_are_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="gazecheck.models.base"):
        out = normalize_verdicts([_v(2)], 4)
    assert len(out) == 1
    assert "[1, 3, 4]" in caplog.text


def test_summary_counts_add_up():
    results = [
        GazeJudgment(frame=1, gaze=True, confidence=90),
        GazeJudgment(frame=2, gaze=False, eyesClosed=True, confidence=70),
        GazeJudgment(frame=3, gaze=True, confidence=80),
    ]
    s = summarize(results)
    assert (s.analyzed, s.on_screen, s.off_screen) == (3, 2, 1)


def test_summary_of_nothing():
    s = summarize([])
    assert (s.analyzed, s.on_screen, s.off_screen) == (0, 0, 0)
