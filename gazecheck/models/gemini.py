from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

import httpx
from google import genai
from google.genai import types
from google.genai.errors import APIError
from pydantic import ValidationError

from ..errors import ModelCallError
from ..prompt import GazePrompt
from ..schemas import FrameVerdict, GazeReport

logger = logging.getLogger(__name__)

MAX_OUTPUT_TOKENS = 2048


@dataclass
class GeminiGazeModel:
    """Gemini backend using schema-constrained JSON output."""

    model: str = "gemini-2.5-flash"
    api_key: Optional[str] = None
    max_output_tokens: int = MAX_OUTPUT_TOKENS
    client: Any = None

    name: str = field(default="gemini", init=False)

    def __post_init__(self) -> None:
        if self.client is None:
            # genai.Client falls back to GEMINI_API_KEY / GOOGLE_API_KEY when api_key is None
            self.client = genai.Client(api_key=self.api_key)

    def _contents(self, prompt: GazePrompt) -> List[Any]:
        contents: List[Any] = [prompt.instruction]
        for f in prompt.frames:
            contents.append(f.label)
            contents.append(types.Part.from_bytes(data=f.data, mime_type=f.mime_type))
        return contents

    def submit(self, prompt: GazePrompt) -> List[FrameVerdict]:
        logger.info("Sending %d frames to %s", prompt.frame_count, self.model)
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=self._contents(prompt),
                config=types.GenerateContentConfig(
                    system_instruction=prompt.system,
                    response_mime_type="application/json",
                    response_schema=GazeReport,
                    max_output_tokens=self.max_output_tokens,
                ),
            )
        except APIError as e:
            raise ModelCallError(f"Gemini API call failed. Status: {e.code}. Details: {e.message}") from e
        except httpx.HTTPError as e:
            raise ModelCallError(f"Gemini request failed: {type(e).__name__}: {e}") from e

        report = response.parsed
        if isinstance(report, GazeReport):
            return list(report.results)

        text = response.text
        if not text:
            finish_reason = "UNKNOWN"
            if response.candidates and response.candidates[0].finish_reason is not None:
                finish_reason = response.candidates[0].finish_reason.name
            raise ModelCallError(f"Gemini returned a blank response (finish reason: {finish_reason})")

        try:
            return list(GazeReport.model_validate_json(text).results)
        except ValidationError as e:
            raise ModelCallError(f"Gemini output does not conform to the gaze schema: {e}") from e


def build_gemini_model(*, model: str, api_key: Optional[str] = None, **kwargs: Any) -> GeminiGazeModel:
    """Factory used by the registry."""
    return GeminiGazeModel(model=model, api_key=api_key, **kwargs)
