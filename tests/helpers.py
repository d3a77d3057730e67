from __future__ import annotations

import threading
import time
from typing import Callable, List, Optional
from urllib.parse import urlsplit

import numpy as np
import requests
from fastapi.testclient import TestClient

from gazecheck.prompt import GazePrompt
from gazecheck.schemas import FrameVerdict


class StubGazeModel:
    """Records prompts and answers with canned verdicts (or raises)."""

    name = "stub"
    model = "stub-model"

    def __init__(
        self,
        respond: Optional[Callable[[GazePrompt], List[FrameVerdict]]] = None,
        error: Optional[Exception] = None,
    ):
        self._respond = respond or all_on_screen
        self._error = error
        self.prompts: List[GazePrompt] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    def submit(self, prompt: GazePrompt) -> List[FrameVerdict]:
        self.prompts.append(prompt)
        if self._error is not None:
            raise self._error
        return self._respond(prompt)


def all_on_screen(prompt: GazePrompt) -> List[FrameVerdict]:
    return [
        FrameVerdict(frame=f.index, gaze=True, eyesClosed=False, confidence=90.0)
        for f in prompt.frames
    ]


def alternating(prompt: GazePrompt) -> List[FrameVerdict]:
    return [
        FrameVerdict(frame=f.index, gaze=f.index % 2 == 1, eyesClosed=f.index == 4, confidence=75.0)
        for f in prompt.frames
    ]


class FakeCamera:
    """Stands in for cv2.VideoCapture; yields solid frames at roughly ``fps``."""

    def __init__(self, fps: float = 30.0, size=(64, 48), fail_after: Optional[int] = None):
        self.fps = fps
        self.size = size
        self.fail_after = fail_after
        self.reads = 0
        self.released = threading.Event()

    def isOpened(self) -> bool:
        return not self.released.is_set()

    def read(self):
        time.sleep(1.0 / self.fps)
        if self.released.is_set():
            return False, None
        if self.fail_after is not None and self.reads >= self.fail_after:
            return False, None
        self.reads += 1
        w, h = self.size
        return True, np.full((h, w, 3), self.reads % 255, dtype=np.uint8)

    def release(self) -> None:
        self.released.set()


class ASGISession:
    """requests.Session look-alike that routes POSTs into a FastAPI TestClient."""

    def __init__(self, test_client: TestClient):
        self.test_client = test_client

    def post(self, url, json=None, timeout=None):
        resp = self.test_client.post(urlsplit(url).path, json=json)
        out = requests.Response()
        out.status_code = resp.status_code
        out.reason = resp.reason_phrase
        out._content = resp.content
        out.headers.update(resp.headers)
        out.url = url
        return out
