from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field


# -------------------------
# Model-facing schema (every field required for strict structured output)
# -------------------------

class FrameVerdict(BaseModel):
    frame: int = Field(description="Frame number (1-indexed)")
    gaze: bool = Field(
        description="True if gaze is directed towards the camera or very near to it, false otherwise"
    )
    eyesClosed: bool = Field(description="True if the person's eyes are closed in this frame")
    confidence: float = Field(description="Confidence score (0-100) for the gaze determination")


class GazeReport(BaseModel):
    results: List[FrameVerdict]


# -------------------------
# API-facing types
# -------------------------

class GazeJudgment(BaseModel):
    """One per-frame judgment as returned by ``POST /api/gaze``."""

    model_config = ConfigDict(frozen=True)

    frame: int
    gaze: bool
    eyesClosed: bool = False
    confidence: float = Field(ge=0.0, le=100.0)


class Summary(BaseModel):
    analyzed: int
    on_screen: int
    off_screen: int


def summarize(results: List[GazeJudgment]) -> Summary:
    on_screen = sum(1 for r in results if r.gaze)
    return Summary(analyzed=len(results), on_screen=on_screen, off_screen=len(results) - on_screen)
