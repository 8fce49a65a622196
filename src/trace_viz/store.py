"""In-memory event history for the current session."""

from __future__ import annotations

from collections.abc import Sequence

from trace_viz.normalizer import now_ms
from trace_viz.types import (
    TOOL_TYPES,
    Event,
    SessionEndEvent,
    SessionStats,
    ToolEndEvent,
    ToolType,
)


def compute_stats(
    session_id: str, start_time: int, events: Sequence[Event]
) -> SessionStats:
    """Aggregate statistics from an ordered event sequence.

    Token totals, model and end time come from the first ``session_end``
    event; tool counts cover ``tool_end`` events only.
    """
    by_type: dict[ToolType, int] = dict.fromkeys(TOOL_TYPES, 0)
    tool_calls = 0
    agent_ids: set[str] = set()
    session_end: SessionEndEvent | None = None

    for event in events:
        agent_ids.add(event.agent_id)
        if isinstance(event, ToolEndEvent):
            tool_calls += 1
            by_type[event.tool_type] += 1
        elif isinstance(event, SessionEndEvent) and session_end is None:
            session_end = event

    return SessionStats(
        session_id=session_id,
        start_time=start_time,
        end_time=session_end.timestamp if session_end else None,
        total_input_tokens=session_end.total_input_tokens if session_end else 0,
        total_output_tokens=session_end.total_output_tokens if session_end else 0,
        tool_call_count=tool_calls,
        tool_calls_by_type=by_type,
        agent_count=len(agent_ids),
        model=session_end.model if session_end else None,
    )


class EventStore:
    """Append-only ordered event history.

    The history is unbounded for the lifetime of the process; nothing is
    evicted. Statistics are recomputed from the full history on every call,
    so they can never drift from the events they describe.
    """

    def __init__(self, session_id: str, start_time: int | None = None) -> None:
        self.session_id = session_id
        self.start_time = start_time if start_time is not None else now_ms()
        self._events: list[Event] = []

    def __len__(self) -> int:
        return len(self._events)

    def append(self, event: Event) -> None:
        self._events.append(event)

    def all(self) -> list[Event]:
        """Return a copy of the history in acceptance order."""
        return list(self._events)

    def stats(self) -> SessionStats:
        return compute_stats(self.session_id, self.start_time, self._events)
