from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..config import DEFAULT_MODELS
from .base import BackendSpec, GazeModel
from .gemini import build_gemini_model
from .openai_responses import build_openai_model


# -------------------------
# Registry (name -> spec + builder)
# -------------------------

@dataclass(frozen=True)
class _Entry:
    spec: BackendSpec
    builder: Callable[..., GazeModel]


_REGISTRY: Dict[str, _Entry] = {
    "gemini": _Entry(
        spec=BackendSpec(
            name="gemini",
            default_model=DEFAULT_MODELS["gemini"],
            api_key_env="GEMINI_API_KEY",
            description="Google Gemini via google-genai, JSON output constrained by response_schema.",
        ),
        builder=build_gemini_model,
    ),
    "openai": _Entry(
        spec=BackendSpec(
            name="openai",
            default_model=DEFAULT_MODELS["openai"],
            api_key_env="OPENAI_API_KEY",
            description="OpenAI Responses API, output parsed into the gaze schema.",
        ),
        builder=build_openai_model,
    ),
}


def available_backends() -> List[str]:
    return sorted(_REGISTRY.keys())


def backend_spec(name: str) -> BackendSpec:
    key = (name or "").strip().lower()
    if key not in _REGISTRY:
        raise ValueError(f"Unknown backend '{name}'. Available: {available_backends()}")
    return _REGISTRY[key].spec


def get_gaze_model(
    *,
    backend: str = "gemini",
    model: Optional[str] = None,
    api_key: Optional[str] = None,
    **kwargs: Any,
) -> GazeModel:
    """Factory: construct a hosted-model backend.

    Args:
      backend: backend name (default: gemini)
      model: model identifier; the backend default is used when omitted
      api_key: API key; when omitted the SDK reads its usual environment variable

    Extra kwargs are passed to the backend builder (e.g. a pre-built ``client``).
    """
    key = (backend or "").strip().lower()
    if key not in _REGISTRY:
        raise ValueError(f"Unknown backend '{backend}'. Available: {available_backends()}")

    entry = _REGISTRY[key]
    return entry.builder(model=model or entry.spec.default_model, api_key=api_key, **kwargs)
