from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple

# ------------------------
# Defaults
# ------------------------
DEFAULT_BACKEND = "gemini"
DEFAULT_MODELS = {
    "gemini": "gemini-2.5-flash",
    "openai": "gpt-4.1-mini",
}
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000

RECORDING_DURATION = 2
FRAME_COUNT = 4


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    """Server settings, read from the environment once at startup."""

    backend: str = DEFAULT_BACKEND
    model: Optional[str] = None
    api_key: Optional[str] = None
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    cors_origins: Tuple[str, ...] = ("*",)

    @property
    def model_name(self) -> str:
        return self.model or DEFAULT_MODELS.get(self.backend, "")

    @classmethod
    def from_env(cls) -> "Settings":
        backend = (os.getenv("GAZECHECK_BACKEND") or DEFAULT_BACKEND).strip().lower()
        if backend == "openai":
            api_key = os.getenv("OPENAI_API_KEY")
        else:
            api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
        return cls(
            backend=backend,
            model=os.getenv("GAZECHECK_MODEL") or None,
            api_key=api_key,
            host=os.getenv("GAZECHECK_HOST") or DEFAULT_HOST,
            port=_env_int("GAZECHECK_PORT", DEFAULT_PORT),
            cors_origins=_env_list("GAZECHECK_CORS_ORIGINS", ("*",)),
        )


@dataclass(frozen=True)
class CaptureConfig:
    # Recording window
    duration: float = RECORDING_DURATION
    frame_count: int = FRAME_COUNT

    # Camera
    camera_index: int = 0
    width: int = 1280
    height: int = 720

    # Encoding
    jpeg_quality: int = 90
    fourcc: str = "MJPG"

    # Extraction when duration metadata is unusable
    fallback_window: float = 2.0

    def __post_init__(self) -> None:
        if self.duration <= 0:
            raise ValueError("duration must be positive")
        if self.frame_count <= 0:
            raise ValueError("frame_count must be positive")
        if not 0 <= self.jpeg_quality <= 100:
            raise ValueError("jpeg_quality must be within 0..100")

    @property
    def sample_interval(self) -> float:
        return float(self.duration) / float(self.frame_count)
