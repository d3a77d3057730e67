from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, List, Optional

import requests
from pydantic import ValidationError

from .capture import CaptureResult, CaptureSession, extract_frames
from .config import CaptureConfig
from .errors import AnalysisError
from .schemas import GazeJudgment, Summary, summarize

logger = logging.getLogger(__name__)

DEFAULT_URL = "http://127.0.0.1:8000"


class GazeClient:
    """Posts frame batches to a running gazecheck server."""

    def __init__(self, base_url: str = DEFAULT_URL, *, timeout: float = 120.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/api/gaze"

    def analyze(self, frames: List[str]) -> List[GazeJudgment]:
        logger.info("Analyzing %d frames", len(frames))
        try:
            response = self.http.post(self.endpoint, json={"frames": frames}, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise AnalysisError(f"Failed to reach analysis service: {e}") from e

        if not response.ok:
            try:
                detail = response.json().get("error")
            except (ValueError, AttributeError):
                detail = None
            logger.error("Analysis response error: %s %s %s", response.status_code, response.reason, detail)
            raise AnalysisError(
                f"Failed to analyze frames: {response.status_code} {response.reason} - "
                f"{detail or 'Unknown server error'}"
            )

        try:
            payload: Any = response.json()
        except ValueError as e:
            raise AnalysisError("Invalid response from analysis service") from e

        if not isinstance(payload, list):
            logger.error("Invalid analysis response data: %r", payload)
            raise AnalysisError("Analysis service did not return valid results")

        try:
            return [GazeJudgment.model_validate(item) for item in payload]
        except ValidationError as e:
            raise AnalysisError("Analysis service did not return valid results") from e


class AnalysisSession:
    """Record → (fallback extract) → analyze → summary, with restart.

    Mirrors the state the browser page keeps: captured frames, the fallback
    recording and the last results.
    """

    def __init__(
        self,
        client: GazeClient,
        config: Optional[CaptureConfig] = None,
        *,
        session_factory: Optional[Callable[[CaptureConfig], CaptureSession]] = None,
    ):
        self.client = client
        self.config = config or CaptureConfig()
        self._session_factory = session_factory or (lambda cfg: CaptureSession(cfg))
        self.frames: List[str] = []
        self.recording: Optional[Path] = None
        self.results: Optional[List[GazeJudgment]] = None
        self._owns_recording = False
        self.active: Optional[CaptureSession] = None

    def record(self, *, keep_recording: bool = False) -> CaptureResult:
        """Run one timed recording. Camera errors propagate and leave the session reset.

        With ``keep_recording`` the video file survives :meth:`restart`.
        """
        self.restart()
        capture = self._session_factory(self.config)
        self.active = capture
        try:
            result = capture.run()
        finally:
            self.active = None
        self.frames = result.data_uris
        self.recording = result.recording
        self._owns_recording = not keep_recording
        return result

    def cancel(self) -> None:
        if self.active is not None:
            self.active.cancel()

    def load_recording(self, path: Path) -> None:
        """Analyze an existing video instead of recording one."""
        self.restart()
        self.recording = Path(path)

    def analyze(self) -> List[GazeJudgment]:
        frames = self.frames
        if len(frames) < self.config.frame_count and self.recording is not None:
            logger.info("Not enough frames captured during recording, attempting extraction from video")
            extracted = extract_frames(
                self.recording,
                self.config.frame_count,
                fallback_window=self.config.fallback_window,
                jpeg_quality=self.config.jpeg_quality,
            )
            frames = [f.data_uri for f in extracted]

        if not frames:
            raise AnalysisError("No frames captured for analysis")

        self.results = self.client.analyze(frames)
        return self.results

    def summary(self) -> Summary:
        if self.results is None:
            raise AnalysisError("No analysis results yet")
        return summarize(self.results)

    def restart(self) -> None:
        if self.recording is not None and self._owns_recording:
            try:
                self.recording.unlink()
            except FileNotFoundError:
                pass
        self.frames = []
        self.recording = None
        self._owns_recording = False
        self.results = None

