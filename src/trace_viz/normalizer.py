"""Map raw hook payloads onto canonical events."""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel, ValidationError

from trace_viz.payloads import (
    NotificationPayload,
    PostCompactPayload,
    PostToolUsePayload,
    PreCompactPayload,
    PreToolUsePayload,
    StopPayload,
    SubagentStopPayload,
)
from trace_viz.types import (
    EVENT_TYPES,
    AgentCompleteEvent,
    AgentSpawnEvent,
    CompactEndEvent,
    CompactStartEvent,
    Event,
    NotificationEvent,
    SessionEndEvent,
    ToolEndEvent,
    ToolStartEvent,
    ToolType,
    event_adapter,
)

REPLAY_HOOK = "__replay__"
SPAWN_TOOL = "Task"

TOOL_TYPE_MAP: dict[str, ToolType] = {
    "Read": "file",
    "Write": "file",
    "Edit": "file",
    "Glob": "file",
    "Grep": "file",
    "NotebookEdit": "file",
    "Bash": "bash",
    "WebFetch": "web",
    "WebSearch": "web",
    "Task": "task",
}


@dataclass(frozen=True, slots=True)
class Rejected:
    """Outcome of a payload that produces no event."""

    reason: str


NormalizeResult = Union[Event, Rejected]


def classify_tool(tool_name: str) -> ToolType:
    """Return the category for a tool name; unknown tools are "other"."""
    return TOOL_TYPE_MAP.get(tool_name, "other")


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True)
class _Stamp:
    """Identity assigned to an event at acceptance time."""

    id: str
    agent_id: str
    timestamp: int

    def base(self, session_id: str) -> dict[str, Any]:
        return {
            "id": self.id,
            "session_id": session_id,
            "agent_id": self.agent_id,
            "timestamp": self.timestamp,
        }


# =============================================================================
# Per-hook builders
# =============================================================================


def _pre_tool_use(payload: PreToolUsePayload, stamp: _Stamp) -> Event:
    base = stamp.base(payload.session_id)
    if payload.tool_name == SPAWN_TOOL:
        child_id = payload.subagent_id or f"agent-{stamp.id[:6]}"
        return AgentSpawnEvent(
            **base, parent_agent_id=stamp.agent_id, child_agent_id=child_id
        )
    return ToolStartEvent(
        **base,
        tool_name=payload.tool_name,
        tool_type=classify_tool(payload.tool_name),
    )


def _post_tool_use(payload: PostToolUsePayload, stamp: _Stamp) -> Event:
    return ToolEndEvent(
        **stamp.base(payload.session_id),
        tool_name=payload.tool_name,
        tool_type=classify_tool(payload.tool_name),
        duration_ms=round(payload.duration_ms),
        success=payload.success,
        output_size=payload.output_size,
    )


def _notification(payload: NotificationPayload, stamp: _Stamp) -> Event:
    return NotificationEvent(
        **stamp.base(payload.session_id),
        message=payload.message,
        level=payload.level,
    )


def _stop(payload: StopPayload, stamp: _Stamp) -> Event:
    return SessionEndEvent(
        **stamp.base(payload.session_id),
        total_input_tokens=payload.total_input_tokens,
        total_output_tokens=payload.total_output_tokens,
        model=payload.model,
    )


def _pre_compact(payload: PreCompactPayload, stamp: _Stamp) -> Event:
    return CompactStartEvent(
        **stamp.base(payload.session_id), tokens_before=payload.tokens_before
    )


def _post_compact(payload: PostCompactPayload, stamp: _Stamp) -> Event:
    return CompactEndEvent(
        **stamp.base(payload.session_id), tokens_after=payload.tokens_after
    )


def _subagent_stop(payload: SubagentStopPayload, stamp: _Stamp) -> Event:
    return AgentCompleteEvent(
        **stamp.base(payload.session_id),
        parent_agent_id=stamp.agent_id,
        child_agent_id=payload.subagent_id,
    )


_Builder = Callable[[Any, _Stamp], Event]

HOOK_HANDLERS: dict[str, tuple[type[BaseModel], _Builder]] = {
    "PreToolUse": (PreToolUsePayload, _pre_tool_use),
    "PostToolUse": (PostToolUsePayload, _post_tool_use),
    "Notification": (NotificationPayload, _notification),
    "Stop": (StopPayload, _stop),
    "PreCompact": (PreCompactPayload, _pre_compact),
    "PostCompact": (PostCompactPayload, _post_compact),
    "SubagentStop": (SubagentStopPayload, _subagent_stop),
}


def _replay(fields: dict[str, Any], stamp: _Stamp) -> NormalizeResult:
    """Re-stamp an already-normalized event, keeping its other fields as-is."""
    event_type = fields.get("type")
    if not isinstance(event_type, str) or event_type not in EVENT_TYPES:
        return Rejected(f"replayed payload has no recognizable type: {event_type!r}")

    fields.pop("hook", None)
    fields.setdefault("sessionId", fields.pop("session_id", "unknown"))
    fields.setdefault("agentId", fields.pop("agent_id", stamp.agent_id))
    fields["id"] = stamp.id
    fields["timestamp"] = stamp.timestamp
    try:
        return event_adapter.validate_python(fields)
    except ValidationError as exc:
        return Rejected(f"replayed {event_type} event is invalid: {exc.error_count()} error(s)")


def normalize(payload: Any, agent_id: str) -> NormalizeResult:
    """Turn a hook payload into a canonical event.

    Args:
        payload: Decoded request body. Expected to be a mapping with a ``hook``
            discriminator; anything else is rejected.
        agent_id: Originating agent, already resolved by the caller.

    Returns:
        The accepted event, or ``Rejected`` describing why none was produced.
        This function never raises for bad input.
    """
    if not isinstance(payload, Mapping):
        return Rejected("payload is not an object")

    # JSON null means "not provided" for every field.
    fields = {key: value for key, value in payload.items() if value is not None}
    hook = fields.get("hook")
    stamp = _Stamp(id=str(uuid.uuid4()), agent_id=agent_id, timestamp=now_ms())

    if hook == REPLAY_HOOK:
        return _replay(fields, stamp)

    handler = HOOK_HANDLERS.get(hook) if isinstance(hook, str) else None
    if handler is None:
        return Rejected(f"unknown hook kind: {hook!r}")

    schema, build = handler
    try:
        parsed = schema.model_validate(fields)
    except ValidationError as exc:
        return Rejected(f"unparseable {hook} payload: {exc.error_count()} error(s)")
    return build(parsed, stamp)
