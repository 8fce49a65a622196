"""trace-viz: live observability daemon for coding-agent lifecycle hooks."""

from trace_viz.config import DaemonConfig
from trace_viz.daemon import DaemonContext, create_app, serve
from trace_viz.exceptions import SessionLogError, TraceVizError
from trace_viz.normalizer import Rejected, classify_tool, normalize
from trace_viz.session_log import (
    SessionLogger,
    parse_session_log,
    read_session_log,
    replay_payload,
)
from trace_viz.store import EventStore, compute_stats
from trace_viz.subscribers import Subscriber, SubscriberRegistry
from trace_viz.types import (
    AgentCompleteEvent,
    AgentSpawnEvent,
    CompactEndEvent,
    CompactStartEvent,
    Event,
    NotificationEvent,
    SessionEndEvent,
    SessionStats,
    ToolEndEvent,
    ToolStartEvent,
    ToolType,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "DaemonConfig",
    "DaemonContext",
    "create_app",
    "serve",
    "normalize",
    "classify_tool",
    "Rejected",
    "EventStore",
    "compute_stats",
    "SessionLogger",
    "parse_session_log",
    "read_session_log",
    "replay_payload",
    "Subscriber",
    "SubscriberRegistry",
    "Event",
    "ToolType",
    "ToolStartEvent",
    "ToolEndEvent",
    "NotificationEvent",
    "SessionEndEvent",
    "CompactStartEvent",
    "CompactEndEvent",
    "AgentSpawnEvent",
    "AgentCompleteEvent",
    "SessionStats",
    "TraceVizError",
    "SessionLogError",
]
