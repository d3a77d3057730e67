from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Protocol

from ..prompt import GazePrompt
from ..schemas import FrameVerdict, GazeJudgment

logger = logging.getLogger(__name__)


class GazeModel(Protocol):
    """Interface for hosted model backends.

    ``submit`` makes exactly one call to the hosted model and returns the raw
    per-frame verdicts, or raises :class:`gazecheck.errors.ModelCallError`.
    """

    name: str
    model: str

    def submit(self, prompt: GazePrompt) -> List[FrameVerdict]:
        ...


@dataclass(frozen=True)
class BackendSpec:
    """Small descriptor used for listing backends."""

    name: str
    default_model: str
    api_key_env: str
    description: str = ""


def _clamp_confidence(value: float) -> float:
    v = float(value)
    if math.isnan(v):
        return 0.0
    return max(0.0, min(100.0, v))


def normalize_verdicts(verdicts: Iterable[FrameVerdict], frame_count: int) -> List[GazeJudgment]:
    """Turn model verdicts into the judgments returned to clients.

    Verdicts for frames outside ``1..frame_count`` are dropped, the first
    verdict wins for duplicated frame numbers, and the output is ordered by
    frame. The result never holds more than ``frame_count`` entries.
    """
    by_frame: Dict[int, GazeJudgment] = {}
    dropped = 0
    for v in verdicts:
        if not 1 <= v.frame <= frame_count or v.frame in by_frame:
            dropped += 1
            continue
        by_frame[v.frame] = GazeJudgment(
            frame=v.frame,
            gaze=bool(v.gaze),
            eyesClosed=bool(v.eyesClosed),
            confidence=_clamp_confidence(v.confidence),
        )

    if dropped:
        logger.warning("Dropped %d out-of-range or duplicate verdicts", dropped)
    if len(by_frame) < frame_count:
        missing = sorted(set(range(1, frame_count + 1)) - set(by_frame))
        logger.warning("Model returned no verdict for frames %s", missing)

    return [by_frame[k] for k in sorted(by_frame)]
