"""The trace-viz daemon: hook ingestion, history queries and the live feed.

Routes:
  POST /event    submit a hook payload
  GET  /events   full event history
  GET  /stats    session statistics
  GET  /health   liveness
  WS   /         snapshot, then one message per accepted event
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import uvicorn
from fastapi import APIRouter, FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.requests import HTTPConnection
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles

from trace_viz.config import DaemonConfig
from trace_viz.normalizer import Rejected, normalize
from trace_viz.session_log import SessionLogger
from trace_viz.store import EventStore
from trace_viz.subscribers import Subscriber, SubscriberRegistry
from trace_viz.types import Event

logger = logging.getLogger(__name__)

router = APIRouter()


def resolve_agent_id(payload: Any, default: str) -> str:
    """Pick the submitting agent from the payload, falling back to ``default``."""
    if isinstance(payload, dict):
        agent_id = payload.get("agent_id")
        if isinstance(agent_id, str) and agent_id:
            return agent_id
    return default


@dataclass
class DaemonContext:
    """State owned by one daemon instance.

    Ingestion and subscriber registration share ``lock`` so that a new
    subscriber's snapshot and its place in the live set are captured
    between two accepted events, never across one.
    """

    config: DaemonConfig
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    store: EventStore = field(init=False)
    subscribers: SubscriberRegistry = field(init=False)
    session_log: SessionLogger = field(init=False)

    def __post_init__(self) -> None:
        self.store = EventStore(self.session_id)
        self.subscribers = SubscriberRegistry(self.config.send_timeout)
        self.session_log = SessionLogger(self.session_id, self.config.log_dir)

    def snapshot(self) -> dict[str, Any]:
        return {
            "type": "snapshot",
            "events": [event.to_wire() for event in self.store.all()],
            "stats": self.store.stats().to_wire(),
        }

    async def submit(self, payload: Any) -> Event | None:
        """Normalize, record and broadcast a payload.

        Returns:
            The accepted event, or None when the payload was rejected.
        """
        agent_id = resolve_agent_id(payload, self.config.default_agent_id)
        async with self.lock:
            result = normalize(payload, agent_id)
            if isinstance(result, Rejected):
                logger.debug("Dropped hook payload: %s", result.reason)
                return None
            self.store.append(result)
            self.session_log.write(result)
            await self.subscribers.broadcast(result.to_json())
        return result

    async def subscribe(self, subscriber: Subscriber) -> int:
        """Send the current snapshot, then join the live set.

        Raises:
            TimeoutError: The snapshot was not accepted within the send
                timeout; the subscriber is not registered.
        """
        async with self.lock:
            await self.subscribers.deliver(subscriber, json.dumps(self.snapshot()))
            return self.subscribers.add(subscriber)


def get_context(connection: HTTPConnection) -> DaemonContext:
    return connection.app.state.daemon


# =============================================================================
# Routes
# =============================================================================


@router.post("/event")
async def submit_event(request: Request) -> PlainTextResponse:
    body = await request.body()
    try:
        payload = json.loads(body)
    except ValueError:
        return PlainTextResponse("invalid json", status_code=400)
    await get_context(request).submit(payload)
    return PlainTextResponse("ok")


@router.get("/events")
async def list_events(request: Request) -> JSONResponse:
    events = get_context(request).store.all()
    return JSONResponse([event.to_wire() for event in events])


@router.get("/stats")
async def get_stats(request: Request) -> JSONResponse:
    return JSONResponse(get_context(request).store.stats().to_wire())


@router.get("/health")
async def health() -> PlainTextResponse:
    return PlainTextResponse("ok")


@router.websocket("/")
async def live_feed(websocket: WebSocket) -> None:
    context = get_context(websocket)
    await websocket.accept()
    try:
        handle = await context.subscribe(websocket)
    except (WebSocketDisconnect, TimeoutError, RuntimeError, OSError) as exc:
        logger.debug("Live feed closed before the snapshot was delivered: %r", exc)
        return
    try:
        # Inbound frames carry nothing; keep reading until the client leaves.
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        context.subscribers.discard(handle)


# =============================================================================
# Application
# =============================================================================


def create_app(config: DaemonConfig | None = None) -> FastAPI:
    """Build an independent daemon application with a fresh session."""
    config = config or DaemonConfig()
    context = DaemonContext(config=config)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        context.session_log.open()
        logger.info(
            "trace-viz session %s started, logging to %s",
            context.session_id,
            context.session_log.path,
        )
        try:
            yield
        finally:
            context.session_log.close()

    app = FastAPI(title="trace-viz", lifespan=lifespan)
    app.state.daemon = context
    app.include_router(router)
    if config.web_dist_path is not None:
        app.mount(
            "/",
            StaticFiles(directory=config.web_dist_path, html=True, check_dir=False),
            name="web",
        )
    return app


def serve(config: DaemonConfig | None = None) -> None:
    """Run the daemon until interrupted. Failing to bind the port is fatal."""
    config = config or DaemonConfig()
    uvicorn.run(create_app(config), host=config.host, port=config.port)
