from __future__ import annotations

import json
import logging
from typing import Any, List

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from .errors import ModelCallError
from .models import normalize_verdicts
from .prompt import FrameDecodeError, build_prompt

logger = logging.getLogger(__name__)

router = APIRouter()

ERR_INVALID_BODY = "Invalid request body format"
ERR_NO_FRAMES = "No frames provided for analysis"
ERR_NOT_INITIALIZED = "Model backend not initialized. Check the API key for the configured backend."
ERR_MODEL_CALL = "Failed to analyze frames with AI service. Check API key/quota or model output conformity."
ERR_UNEXPECTED = "Failed to analyze frames"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _valid_frames(body: Any) -> List[str]:
    if not isinstance(body, dict):
        return []
    frames = body.get("frames")
    if not isinstance(frames, list) or not frames:
        return []
    if not all(isinstance(f, str) and f.strip() for f in frames):
        return []
    return frames


# ------------------------
# Gaze analysis endpoint
# ------------------------
@router.post("/api/gaze")
async def analyze_gaze(request: Request):
    try:
        body = json.loads(await request.body())
    except (ValueError, RecursionError) as e:
        logger.warning("Error parsing request body: %s", e)
        return _error(400, ERR_INVALID_BODY)

    frames = _valid_frames(body)
    if not frames:
        return _error(400, ERR_NO_FRAMES)

    try:
        prompt = build_prompt(frames)
    except FrameDecodeError as e:
        logger.warning("%s", e)
        return _error(400, str(e))

    gaze_model = request.app.state.gaze_model
    if gaze_model is None:
        return _error(500, ERR_NOT_INITIALIZED)

    logger.info("Analyzing %d frames with %s", len(frames), gaze_model.model)
    try:
        verdicts = await run_in_threadpool(gaze_model.submit, prompt)
    except ModelCallError as e:
        logger.error("Error calling model backend: %s", e)
        return _error(500, ERR_MODEL_CALL)
    except Exception:
        logger.exception("Error analyzing frames")
        return _error(500, ERR_UNEXPECTED)

    results = normalize_verdicts(verdicts, prompt.frame_count)
    logger.info("Model returned %d judgments for %d frames", len(results), prompt.frame_count)
    return JSONResponse(content=[r.model_dump() for r in results])


@router.get("/api/health")
def health(request: Request):
    settings = request.app.state.settings
    return {
        "status": "ok" if request.app.state.gaze_model is not None else "degraded",
        "backend": settings.backend,
        "model": settings.model_name,
    }
