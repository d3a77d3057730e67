from __future__ import annotations


class GazeCheckError(Exception):
    """Base class for errors raised by gazecheck."""


class CameraError(GazeCheckError):
    """The camera could not be opened (no device, permission denied, busy)."""


class ExtractionError(GazeCheckError):
    """A recording could not be opened or decoded."""


class ModelCallError(GazeCheckError):
    """The hosted model call failed or returned output that does not fit the schema."""


class AnalysisError(GazeCheckError):
    """Client-side failure while submitting frames for analysis."""
