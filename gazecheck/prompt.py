"""
Prompt construction for the gaze proxy.

All frames of one request go into a single prompt: a fixed instruction block
followed by ``Frame i:`` labels (1-indexed), each followed by its image.
"""
from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from typing import List, Sequence, Tuple

DATA_RE = re.compile(r"^data:(image/[\w.+-]+);base64,", re.IGNORECASE)
DEFAULT_MIME_TYPE = "image/jpeg"

SYSTEM_INSTRUCTION = (
    "You are a computer vision expert that analyzes gaze direction in images. "
    "'On-screen' means directed towards the camera/device screen. "
    "You output structured JSON conforming to the provided schema."
)

INSTRUCTION = (
    "Your task is to analyze the direction of the person's gaze in each frame. "
    "The person is using a device (laptop or smartphone) with a front-facing camera capturing these images. "
    "This means if the person is generally making eye contact with the camera, it is on-screen. "
    "Determine if their gaze is directed *towards the device's screen/camera* (on-screen = true) "
    "or elsewhere (off-screen = false). "
    "Facing the camera but with eyes tilted slightly below the camera counts as on-screen, as laptop cameras "
    "and front facing phone cameras are often mounted above the screen itself. "
    "Looking significantly left, right, or up counts as off-screen. "
    "If the person's eyes are closed, return false and set eyesClosed to true. "
    "If you cannot see the user's face or eyes, return false as well. "
    "If there is no person in the image, return false. "
    "For each frame number (1-indexed), provide this true/false determination and a confidence score (0-100). "
    "Output the results according to the provided schema."
)


class FrameDecodeError(ValueError):
    """A submitted frame is not a base64 image (optionally wrapped in a data URI)."""

    def __init__(self, index: int, reason: str):
        super().__init__(f"Frame {index} is not a valid base64-encoded image: {reason}")
        self.index = index


@dataclass(frozen=True)
class FrameImage:
    index: int  # 1-indexed position in the capture sequence
    mime_type: str
    data: bytes

    @property
    def label(self) -> str:
        return f"Frame {self.index}:"

    def to_data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{base64.b64encode(self.data).decode('ascii')}"


@dataclass(frozen=True)
class GazePrompt:
    system: str
    instruction: str
    frames: Tuple[FrameImage, ...]

    @property
    def frame_count(self) -> int:
        return len(self.frames)


def split_data_uri(value: str) -> Tuple[str, str]:
    """Return (mime_type, base64 payload). Bare base64 is assumed to be JPEG."""
    m = DATA_RE.match(value)
    if m is None:
        return DEFAULT_MIME_TYPE, value
    return m.group(1).lower(), value[m.end():]


def decode_frame(value: str, index: int) -> FrameImage:
    mime_type, payload = split_data_uri(value.strip())
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise FrameDecodeError(index, str(e)) from e
    if not data:
        raise FrameDecodeError(index, "empty payload")
    return FrameImage(index=index, mime_type=mime_type, data=data)


def build_prompt(frames: Sequence[str]) -> GazePrompt:
    """Decode every frame and wrap them with the gaze instruction."""
    images: List[FrameImage] = [decode_frame(f, i) for i, f in enumerate(frames, start=1)]
    return GazePrompt(system=SYSTEM_INSTRUCTION, instruction=INSTRUCTION, frames=tuple(images))
