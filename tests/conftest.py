from __future__ import annotations

import numpy as np
import pytest
from fastapi.testclient import TestClient

from gazecheck.capture import encode_frame
from gazecheck.config import Settings
from gazecheck.server import create_app

from .helpers import StubGazeModel


@pytest.fixture
def settings() -> Settings:
    return Settings(backend="gemini", model="stub-model", api_key="test")


@pytest.fixture
def stub_model() -> StubGazeModel:
    return StubGazeModel()


@pytest.fixture
def client(settings, stub_model) -> TestClient:
    return TestClient(create_app(settings, gaze_model=stub_model))


@pytest.fixture
def jpeg_uri() -> str:
    return encode_frame(np.zeros((8, 8, 3), dtype=np.uint8))
