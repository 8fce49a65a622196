"""Durable append-only JSONL log of a session's events."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import IO, Any

from pydantic import ValidationError

from trace_viz.exceptions import SessionLogError
from trace_viz.normalizer import REPLAY_HOOK
from trace_viz.types import Event, event_adapter

logger = logging.getLogger(__name__)


class SessionLogger:
    """Appends one JSON line per accepted event to ``<log_dir>/<session_id>.jsonl``.

    Writes go to a buffered handle and are flushed on ``close()``. Failures
    to open or write are logged and otherwise ignored: losing the durable
    copy never rejects an event.
    """

    def __init__(self, session_id: str, log_dir: Path) -> None:
        self.session_id = session_id
        self.path = log_dir / f"{session_id}.jsonl"
        self._handle: IO[str] | None = None

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    def open(self) -> None:
        if self._handle is not None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._handle = self.path.open("a", encoding="utf-8")
        except OSError as exc:
            logger.warning("Session log disabled, cannot open %s: %s", self.path, exc)
            self._handle = None

    def write(self, event: Event) -> None:
        if self._handle is None:
            return
        try:
            self._handle.write(event.to_json() + "\n")
        except (OSError, ValueError) as exc:
            logger.warning("Failed to write event %s to %s: %s", event.id, self.path, exc)

    def close(self) -> None:
        handle, self._handle = self._handle, None
        if handle is None:
            return
        try:
            handle.flush()
            handle.close()
        except OSError as exc:
            logger.warning("Failed to close session log %s: %s", self.path, exc)

    def __enter__(self) -> SessionLogger:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


# =============================================================================
# Replay helpers
# =============================================================================


def parse_session_log(content: str) -> list[Event]:
    """Parse JSONL content, skipping blank and malformed lines."""
    events: list[Event] = []
    for line_number, line in enumerate(content.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            events.append(event_adapter.validate_python(json.loads(line)))
        except (json.JSONDecodeError, ValidationError):
            logger.debug("Skipping malformed session log line %d", line_number)
    return events


def read_session_log(path: Path) -> list[Event]:
    """Load every well-formed event recorded in a session log file."""
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SessionLogError(f"Cannot read session log {path}: {exc}", path=path) from exc
    return parse_session_log(content)


def replay_payload(event: Event) -> dict[str, Any]:
    """Build the submission body that re-ingests a recorded event."""
    return {"hook": REPLAY_HOOK, **event.to_wire()}
