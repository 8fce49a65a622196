"""Shared test fixtures for trace-viz."""

from __future__ import annotations

import itertools
from collections.abc import Callable, Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from trace_viz.config import DaemonConfig
from trace_viz.daemon import DaemonContext, create_app
from trace_viz.types import Event, event_adapter


@pytest.fixture
def config(tmp_path) -> DaemonConfig:
    """Daemon config writing session logs under a temp directory."""
    return DaemonConfig(log_dir=tmp_path / "sessions")


@pytest.fixture
def app(config: DaemonConfig):
    return create_app(config)


@pytest.fixture
def context(app) -> DaemonContext:
    return app.state.daemon


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    """Test client with the application lifespan running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_event() -> Callable[..., Event]:
    """Factory for canonical events with unique ids."""
    counter = itertools.count(1)

    def _make(type: str = "notification", **fields: Any) -> Event:
        n = next(counter)
        data: dict[str, Any] = {
            "id": f"evt-{n}",
            "sessionId": "sess-test",
            "agentId": "agent-0",
            "timestamp": 1_700_000_000_000 + n,
            "type": type,
        }
        if type == "notification":
            data.update(message="", level="info")
        elif type in ("tool_start", "tool_end"):
            data.update(toolName="Bash", toolType="bash")
            if type == "tool_end":
                data.update(durationMs=100, success=True)
        elif type == "session_end":
            data.update(totalInputTokens=0, totalOutputTokens=0, model="unknown")
        elif type in ("agent_spawn", "agent_complete"):
            data.update(parentAgentId="agent-0", childAgentId="agent-1")
        data.update(fields)
        return event_adapter.validate_python(data)

    return _make
