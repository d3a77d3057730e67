from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .config import CaptureConfig, Settings
from .errors import GazeCheckError
from .models import available_backends, backend_spec
from .schemas import GazeJudgment, Summary

logger = logging.getLogger("gazecheck")


def _add_capture_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--url", default="http://127.0.0.1:8000", help="Base URL of a running gazecheck server.")
    p.add_argument("--duration", type=float, default=CaptureConfig.duration, help="Recording length in seconds.")
    p.add_argument("--frames", type=int, default=CaptureConfig.frame_count, help="Number of frames to analyze.")
    p.add_argument("--quality", type=int, default=CaptureConfig.jpeg_quality, help="JPEG quality of sampled frames.")
    p.add_argument(
        "--fallback-window",
        type=float,
        default=CaptureConfig.fallback_window,
        help="Seconds of playback sampled when a recording has no usable duration.",
    )
    p.add_argument("--json", dest="as_json", action="store_true", help="Print results as JSON.")


def _build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="gazecheck",
        description=(
            "Record a short webcam clip and ask a hosted multimodal model whether the "
            "subject looks at the camera in each sampled frame."
        ),
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ...).")
    sub = p.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the analysis proxy and the browser page.")
    serve.add_argument("--host", default=None, help="Bind address (default: GAZECHECK_HOST or 127.0.0.1).")
    serve.add_argument("--port", type=int, default=None, help="Port (default: GAZECHECK_PORT or 8000).")
    serve.add_argument("--backend", default=None, help=f"Model backend: {'|'.join(available_backends())}.")
    serve.add_argument("--model", default=None, help="Model identifier (default: backend default).")

    record = sub.add_parser("record", help="Record from the webcam and analyze the sampled frames.")
    record.add_argument("--camera", type=int, default=0, help="Camera index.")
    record.add_argument("--save-recording", type=Path, default=None, help="Keep the fallback recording at this path.")
    _add_capture_args(record)

    video = sub.add_parser("analyze-video", help="Extract frames from an existing video and analyze them.")
    video.add_argument("video", type=Path, help="Path to a video file.")
    _add_capture_args(video)

    sub.add_parser("list-backends", help="List available model backends and exit.")
    return p


def _capture_config(args: argparse.Namespace) -> CaptureConfig:
    return CaptureConfig(
        duration=args.duration,
        frame_count=args.frames,
        jpeg_quality=args.quality,
        fallback_window=args.fallback_window,
        camera_index=getattr(args, "camera", 0),
    )


def _print_results(results: List[GazeJudgment], summary: Summary, as_json: bool) -> None:
    if as_json:
        print(json.dumps({
            "summary": summary.model_dump(),
            "results": [r.model_dump() for r in results],
        }, indent=2))
        return
    print(f"Frames analyzed: {summary.analyzed}")
    print(f"On-screen:       {summary.on_screen}")
    print(f"Off-screen:      {summary.off_screen}")
    for r in results:
        mark = "on " if r.gaze else "off"
        eyes = " (eyes closed)" if r.eyesClosed else ""
        print(f"  Frame {r.frame}: {mark}{eyes} ({r.confidence:.0f}%)")


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    from .server import create_app

    settings = Settings.from_env()
    if args.backend:
        spec = backend_spec(args.backend)
        settings = replace(settings, backend=spec.name, api_key=None)
    if args.model:
        settings = replace(settings, model=args.model)
    if args.host:
        settings = replace(settings, host=args.host)
    if args.port:
        settings = replace(settings, port=args.port)

    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port)
    return 0


def _record(args: argparse.Namespace) -> int:
    from .capture import CaptureSession
    from .client import AnalysisSession, GazeClient

    cfg = _capture_config(args)

    def on_tick(remaining: int) -> None:
        print(f"Recording... {remaining}s", file=sys.stderr)

    def factory(c: CaptureConfig) -> CaptureSession:
        return CaptureSession(c, recording_path=args.save_recording, on_tick=on_tick)

    session = AnalysisSession(GazeClient(args.url), cfg, session_factory=factory)
    try:
        result = session.record(keep_recording=args.save_recording is not None)
        print(f"{len(result.frames)} frames captured during recording", file=sys.stderr)

        results = session.analyze()
        _print_results(results, session.summary(), args.as_json)
    finally:
        # drops the temporary recording; --save-recording files are kept
        session.restart()
    return 0


def _analyze_video(args: argparse.Namespace) -> int:
    from .client import AnalysisSession, GazeClient

    session = AnalysisSession(GazeClient(args.url), _capture_config(args))
    session.load_recording(args.video)
    results = session.analyze()
    _print_results(results, session.summary(), args.as_json)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    p = _build_argparser()
    args = p.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "list-backends":
        for name in available_backends():
            spec = backend_spec(name)
            print(f"{spec.name}\t{spec.default_model}\t{spec.description}")
        return 0

    try:
        if args.command == "serve":
            return _serve(args)
        if args.command == "record":
            return _record(args)
        if args.command == "analyze-video":
            return _analyze_video(args)
    except GazeCheckError as e:
        logger.error("%s", e)
        return 1
    except ValueError as e:
        p.error(str(e))
    return 2


if __name__ == "__main__":
    sys.exit(main())
