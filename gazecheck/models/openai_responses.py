from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from ..errors import ModelCallError
from ..prompt import GazePrompt
from ..schemas import FrameVerdict, GazeReport

logger = logging.getLogger(__name__)


@dataclass
class OpenAIGazeModel:
    """OpenAI backend using the Responses API with a pydantic ``text_format``."""

    model: str = "gpt-4.1-mini"
    api_key: Optional[str] = None
    client: Any = None

    name: str = field(default="openai", init=False)

    def __post_init__(self) -> None:
        if self.client is None:
            self.client = OpenAI(api_key=self.api_key)

    def _input(self, prompt: GazePrompt) -> List[Dict[str, Any]]:
        content: List[Dict[str, Any]] = [{"type": "input_text", "text": prompt.instruction}]
        for f in prompt.frames:
            content.append({"type": "input_text", "text": f.label})
            content.append({"type": "input_image", "image_url": f.to_data_uri()})
        return [{"role": "user", "content": content}]

    def submit(self, prompt: GazePrompt) -> List[FrameVerdict]:
        logger.info("Sending %d frames to %s", prompt.frame_count, self.model)
        try:
            response = self.client.responses.parse(
                model=self.model,
                instructions=prompt.system,
                input=self._input(prompt),
                text_format=GazeReport,
            )
        except OpenAIError as e:
            raise ModelCallError(f"OpenAI call failed: {type(e).__name__}: {e}") from e
        except ValidationError as e:
            raise ModelCallError(f"OpenAI output does not conform to the gaze schema: {e}") from e

        report = response.output_parsed
        if report is None:
            raise ModelCallError("OpenAI returned no parsed output (refusal or blank response)")
        return list(report.results)


def build_openai_model(*, model: str, api_key: Optional[str] = None, **kwargs: Any) -> OpenAIGazeModel:
    """Factory used by the registry."""
    return OpenAIGazeModel(model=model, api_key=api_key, **kwargs)
