"""Exception hierarchy for trace-viz."""

from __future__ import annotations

from pathlib import Path


class TraceVizError(Exception):
    """Base exception for all trace-viz errors."""


class SessionLogError(TraceVizError):
    """Error reading a recorded session log."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path
