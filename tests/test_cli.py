from __future__ import annotations

import json
import tempfile

import numpy as np
import pytest

from gazecheck import cli
from gazecheck.capture import VideoRecorder
from gazecheck.client import GazeClient
from gazecheck.config import Settings
from gazecheck.errors import AnalysisError
from gazecheck.schemas import GazeJudgment

from .helpers import FakeCamera


def _write_video(path):
    with VideoRecorder(path, fps=10.0) as rec:
        for i in range(20):
            rec.write(np.full((48, 64, 3), i * 10, dtype=np.uint8))
    return path


def test_list_backends(capsys):
    assert cli.main(["list-backends"]) == 0
    out = capsys.readouterr().out
    assert out.splitlines()[0].startswith("gemini\tgemini-2.5-flash")
    assert "openai" in out


def test_analyze_video_prints_json_summary(tmp_path, monkeypatch, capsys):
    submitted = []

    def fake_analyze(self, frames):
        submitted.append(frames)
        return [GazeJudgment(frame=i, gaze=i != 2, confidence=80) for i in range(1, len(frames) + 1)]

    monkeypatch.setattr(GazeClient, "analyze", fake_analyze)
    path = _write_video(tmp_path / "clip.avi")

    assert cli.main(["analyze-video", str(path), "--frames", "3", "--json"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert len(submitted[0]) == 3
    assert payload["summary"] == {"analyzed": 3, "on_screen": 2, "off_screen": 1}
    assert [r["frame"] for r in payload["results"]] == [1, 2, 3]


def test_analyze_video_plain_output(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(
        GazeClient,
        "analyze",
        lambda self, frames: [GazeJudgment(frame=1, gaze=False, eyesClosed=True, confidence=64.6)],
    )
    path = _write_video(tmp_path / "clip.avi")

    cli.main(["analyze-video", str(path), "--frames", "1"])

    out = capsys.readouterr().out
    assert "On-screen:       0" in out
    assert "Frame 1: off (eyes closed) (65%)" in out


def test_unreadable_video_exits_with_error(tmp_path):
    assert cli.main(["analyze-video", str(tmp_path / "missing.webm")]) == 1


def test_invalid_capture_settings_are_usage_errors(tmp_path):
    with pytest.raises(SystemExit):
        cli.main(["analyze-video", str(tmp_path / "x.avi"), "--frames", "0"])


# -------------------------
# Settings
# -------------------------

def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("GAZECHECK_BACKEND", "OpenAI")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("GAZECHECK_PORT", "9001")
    monkeypatch.setenv("GAZECHECK_CORS_ORIGINS", "http://a.test, http://b.test")
    monkeypatch.delenv("GAZECHECK_MODEL", raising=False)

    s = Settings.from_env()

    assert s.backend == "openai"
    assert s.api_key == "sk-test"
    assert s.port == 9001
    assert s.cors_origins == ("http://a.test", "http://b.test")
    assert s.model_name == "gpt-4.1-mini"


def test_settings_defaults(monkeypatch):
    for name in ("GAZECHECK_BACKEND", "GAZECHECK_MODEL", "GAZECHECK_PORT", "GAZECHECK_HOST", "GAZECHECK_CORS_ORIGINS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GEMINI_API_KEY", "g-test")

    s = Settings.from_env()

    assert (s.backend, s.model_name, s.api_key, s.port) == ("gemini", "gemini-2.5-flash", "g-test", 8000)


def test_bad_port_is_reported(monkeypatch):
    monkeypatch.setenv("GAZECHECK_PORT", "eighty")
    with pytest.raises(ValueError, match="GAZECHECK_PORT"):
        Settings.from_env()


# -------------------------
# record
# -------------------------

@pytest.fixture
def fake_camera(tmp_path, monkeypatch):
    camera = FakeCamera()
    monkeypatch.setattr("gazecheck.capture.session.default_source_factory", lambda config: camera)
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))
    return camera


def _all_on_screen(self, frames):
    return [GazeJudgment(frame=i, gaze=True, confidence=90) for i in range(1, len(frames) + 1)]


def test_record_removes_its_temporary_recording(tmp_path, fake_camera, monkeypatch, capsys):
    monkeypatch.setattr(GazeClient, "analyze", _all_on_screen)

    assert cli.main(["record", "--duration", "0.3", "--frames", "1"]) == 0

    assert "Frames analyzed: 1" in capsys.readouterr().out
    assert fake_camera.released.is_set()
    assert list(tmp_path.glob("gazecheck-*")) == []


def test_record_removes_recording_when_analysis_fails(tmp_path, fake_camera, monkeypatch):
    def unreachable(self, frames):
        raise AnalysisError("Failed to reach analysis service")

    monkeypatch.setattr(GazeClient, "analyze", unreachable)

    assert cli.main(["record", "--duration", "0.3", "--frames", "1"]) == 1
    assert list(tmp_path.glob("gazecheck-*")) == []


def test_record_keeps_a_saved_recording(tmp_path, fake_camera, monkeypatch):
    monkeypatch.setattr(GazeClient, "analyze", _all_on_screen)
    target = tmp_path / "kept.avi"

    assert cli.main(["record", "--duration", "0.3", "--frames", "1", "--save-recording", str(target)]) == 0
    assert target.exists()


def test_unknown_backend_is_a_usage_error(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["serve", "--backend", "llava"])
    assert exc.value.code == 2
    err = capsys.readouterr().err
    assert "Unknown backend 'llava'" in err
    assert '"Unknown backend' not in err
