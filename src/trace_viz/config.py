"""Daemon configuration."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_PORT = 7823
DEFAULT_AGENT_ID = "agent-0"
SESSION_DIR = Path.home() / ".trace-viz" / "sessions"


class DaemonConfig(BaseModel):
    """Configuration for the trace-viz daemon."""

    host: str = Field(default="127.0.0.1", description="Interface to bind")
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535, description="Listening port")
    log_dir: Path = Field(
        default=SESSION_DIR,
        description="Directory holding one <session_id>.jsonl log per session",
    )
    default_agent_id: str = Field(
        default=DEFAULT_AGENT_ID,
        description="Agent id used when a hook payload does not carry one",
    )
    web_dist_path: Path | None = Field(
        default=None,
        description="Built dashboard assets served for unmatched GET paths",
    )
    send_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Seconds a live subscriber may take to accept one frame before it is dropped",
    )
