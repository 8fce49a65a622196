"""Inbound hook payload schemas.

Each hook kind emitted by the agent runtime has its own loosely-typed shape.
These models pull out the fields the normalizer needs and fill documented
zero-values for anything absent; a field that is present but unusable fails
validation, which the normalizer turns into a rejection.
"""

from __future__ import annotations

from typing import Any, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator

from trace_viz.types import NotificationLevel


class HookPayload(BaseModel):
    """Fields common to every hook payload."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    session_id: str = "unknown"


class PreToolUsePayload(HookPayload):
    tool_name: str = ""
    tool_input: Any = None

    @property
    def subagent_id(self) -> str | None:
        if not isinstance(self.tool_input, dict):
            return None
        value = self.tool_input.get("subagent_id")
        return value if isinstance(value, str) and value else None


class PostToolUsePayload(HookPayload):
    tool_name: str = ""
    duration_ms: float = Field(default=0, allow_inf_nan=False)
    tool_response: Any = None

    @property
    def success(self) -> bool:
        if isinstance(self.tool_response, dict):
            return not self.tool_response.get("error")
        return True

    @property
    def output_size(self) -> int | None:
        if isinstance(self.tool_response, dict):
            output = self.tool_response.get("output")
            if isinstance(output, str):
                return len(output)
        return None


class NotificationPayload(HookPayload):
    message: str = ""
    level: NotificationLevel = "info"

    @field_validator("level", mode="before")
    @classmethod
    def unknown_level_is_info(cls, value: Any) -> Any:
        return value if value in get_args(NotificationLevel) else "info"


class StopPayload(HookPayload):
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    model: str = "unknown"


class PreCompactPayload(HookPayload):
    tokens_before: int | None = None


class PostCompactPayload(HookPayload):
    tokens_after: int | None = None


class SubagentStopPayload(HookPayload):
    subagent_id: str = "unknown"
