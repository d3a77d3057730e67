from __future__ import annotations

import base64
from dataclasses import dataclass

import cv2
import numpy as np

from ..prompt import split_data_uri


@dataclass(frozen=True)
class SampledFrame:
    data_uri: str
    timestamp_sec: float


def encode_frame(frame: np.ndarray, quality: int = 90) -> str:
    """Encode a BGR frame as a JPEG data URI."""
    ok, buffer = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, int(quality)])
    if not ok:
        raise ValueError("JPEG encoding failed")
    return "data:image/jpeg;base64," + base64.b64encode(buffer).decode("utf-8")


def decode_frame(data_uri: str) -> np.ndarray:
    """Decode a data URI (or bare base64) back into a BGR frame."""
    _, payload = split_data_uri(data_uri)
    img = cv2.imdecode(np.frombuffer(base64.b64decode(payload), np.uint8), cv2.IMREAD_COLOR)
    if img is None:
        raise ValueError("Could not decode image data")
    return img
