from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse

from .config import FRAME_COUNT, RECORDING_DURATION, Settings
from .models import GazeModel, get_gaze_model
from .routes import router

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"
INDEX_HTML = STATIC_DIR / "index.html"


def _build_model(settings: Settings) -> Optional[GazeModel]:
    try:
        return get_gaze_model(backend=settings.backend, model=settings.model, api_key=settings.api_key)
    except Exception as e:
        # Keep serving the page; /api/gaze answers 500 until the backend is configured.
        logger.warning("%s client initialization failed. Is the API key set? Error: %s", settings.backend, e)
        return None


def _render_index() -> str:
    html = INDEX_HTML.read_text(encoding="utf-8")
    return (
        html.replace("{{RECORDING_DURATION}}", str(RECORDING_DURATION))
        .replace("{{FRAME_COUNT}}", str(FRAME_COUNT))
    )


def create_app(settings: Optional[Settings] = None, gaze_model: Optional[GazeModel] = None) -> FastAPI:
    """Build the FastAPI app.

    ``gaze_model`` overrides the backend chosen by ``settings`` (used by tests
    and by callers that bring their own client).
    """
    settings = settings or Settings.from_env()

    app = FastAPI(title="gazecheck")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.gaze_model = gaze_model if gaze_model is not None else _build_model(settings)

    app.include_router(router)

    @app.get("/", response_class=HTMLResponse)
    def index():
        return _render_index()

    return app
