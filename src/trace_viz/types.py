"""Core data types for trace-viz."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

ToolType = Literal["bash", "file", "web", "task", "other"]
TOOL_TYPES: tuple[ToolType, ...] = ("bash", "file", "web", "task", "other")

NotificationLevel = Literal["info", "warning", "error"]


class WireModel(BaseModel):
    """Immutable model serialized with lowerCamelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        """Convert to a JSON-ready dict; unset optional fields are omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        """Serialize to a compact JSON string."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


# =============================================================================
# Events
# =============================================================================


class BaseEvent(WireModel):
    """Fields shared by every event variant."""

    id: str
    session_id: str
    agent_id: str
    timestamp: int = Field(description="Capture time in epoch milliseconds")


class ToolStartEvent(BaseEvent):
    type: Literal["tool_start"] = "tool_start"
    tool_name: str
    tool_type: ToolType


class ToolEndEvent(BaseEvent):
    type: Literal["tool_end"] = "tool_end"
    tool_name: str
    tool_type: ToolType
    duration_ms: int
    success: bool
    output_size: int | None = None


class NotificationEvent(BaseEvent):
    type: Literal["notification"] = "notification"
    message: str
    level: NotificationLevel = "info"


class SessionEndEvent(BaseEvent):
    type: Literal["session_end"] = "session_end"
    total_input_tokens: int
    total_output_tokens: int
    model: str


class CompactStartEvent(BaseEvent):
    type: Literal["compact_start"] = "compact_start"
    tokens_before: int | None = None


class CompactEndEvent(BaseEvent):
    type: Literal["compact_end"] = "compact_end"
    tokens_after: int | None = None


class AgentSpawnEvent(BaseEvent):
    type: Literal["agent_spawn"] = "agent_spawn"
    parent_agent_id: str
    child_agent_id: str


class AgentCompleteEvent(BaseEvent):
    type: Literal["agent_complete"] = "agent_complete"
    parent_agent_id: str
    child_agent_id: str


Event = Annotated[
    Union[
        ToolStartEvent,
        ToolEndEvent,
        NotificationEvent,
        SessionEndEvent,
        CompactStartEvent,
        CompactEndEvent,
        AgentSpawnEvent,
        AgentCompleteEvent,
    ],
    Field(discriminator="type"),
]

EVENT_TYPES: frozenset[str] = frozenset(
    {
        "tool_start",
        "tool_end",
        "notification",
        "session_end",
        "compact_start",
        "compact_end",
        "agent_spawn",
        "agent_complete",
    }
)

event_adapter: TypeAdapter[Event] = TypeAdapter(Event)


# =============================================================================
# Statistics
# =============================================================================


def _empty_tool_counts() -> dict[ToolType, int]:
    return dict.fromkeys(TOOL_TYPES, 0)


class SessionStats(WireModel):
    """Aggregate view over a session's events."""

    session_id: str
    start_time: int
    end_time: int | None = None
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    tool_call_count: int = 0
    tool_calls_by_type: dict[ToolType, int] = Field(default_factory=_empty_tool_counts)
    agent_count: int = 0
    model: str | None = None
