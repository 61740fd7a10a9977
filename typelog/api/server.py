"""
FastAPI server for typelog replay.
Exposes the replay controls over HTTP and streams frames over a WebSocket.
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import List, Optional, Union

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from typelog import __version__
from typelog.replay import ReplayCoordinator, ReplayListener
from typelog.shared.errors import DocumentNotFoundError
from typelog.shared.metrics import MetricsRegistry, format_prometheus, get_registry
from typelog.shared.protocol import PlaybackPhase, ReplayFrame

logger = logging.getLogger(__name__)


class SeekRequest(BaseModel):
    virtual_time: Optional[float] = None
    timestamp: Optional[float] = None
    play: bool = False


class SpeedRequest(BaseModel):
    speed: Union[float, str]


class WebSocketBroadcaster(ReplayListener):
    """Forwards published frames and phase changes to connected clients."""

    def __init__(self):
        self.connections: List[WebSocket] = []

    def on_frame(self, frame: ReplayFrame) -> None:
        self._broadcast({"type": "frame", "data": frame.to_dict()})

    def on_phase_change(self, phase: PlaybackPhase) -> None:
        self._broadcast({"type": "phase", "data": {"phase": phase.value}})

    def _broadcast(self, message: dict):
        if not self.connections:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop, dropping broadcast")
            return

        for ws in self.connections.copy():
            loop.create_task(self._send(ws, message))

    async def _send(self, ws: WebSocket, message: dict):
        try:
            await ws.send_json(message)
        except Exception as e:
            logger.debug(f"Dropping WebSocket client: {e}")
            if ws in self.connections:
                self.connections.remove(ws)


def create_app(
    coordinator: ReplayCoordinator,
    registry: Optional[MetricsRegistry] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    registry = registry or get_registry()
    broadcaster = WebSocketBroadcaster()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Replay API starting up")
        coordinator.add_listener(broadcaster)
        if coordinator.session is None:
            coordinator.refresh()

        yield

        logger.info("Replay API shutting down")
        coordinator.stop()
        coordinator.remove_listener(broadcaster)

    app = FastAPI(
        title="typelog replay API",
        description="Replay the edit history of a note",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.coordinator = coordinator
    app.state.broadcaster = broadcaster
    register_routes(app, coordinator, registry, broadcaster)

    return app


def register_routes(
    app: FastAPI,
    coordinator: ReplayCoordinator,
    registry: MetricsRegistry,
    broadcaster: WebSocketBroadcaster,
):
    """Register all API routes."""

    def replay_state(changed: Optional[bool] = None) -> dict:
        session = coordinator.session
        state = {
            "status": coordinator.status,
            "document": session.document.summary() if session else None,
            "bounds": session.bounds.to_dict() if session and session.bounds else None,
            "controls": coordinator.control_state().to_dict(),
            "view": {
                "title": coordinator.view.title,
                **coordinator.view.state.to_dict(),
            },
        }
        if changed is not None:
            state["changed"] = changed
        return state

    # ==================== Replay ====================

    @app.get("/api/replay")
    async def get_replay():
        """Current replay and control state."""
        return replay_state()

    @app.post("/api/replay/start")
    async def start_replay():
        """Start replaying the active document."""
        if coordinator.documents.get_active_document() is None:
            coordinator.start()
            raise HTTPException(status_code=404, detail=coordinator.status)

        if coordinator.session is None or not coordinator.session.has_events:
            coordinator.start()
            raise HTTPException(status_code=409, detail=coordinator.status)

        return replay_state(coordinator.start())

    @app.post("/api/replay/pause")
    async def pause_replay():
        return replay_state(coordinator.pause())

    @app.post("/api/replay/resume")
    async def resume_replay():
        return replay_state(coordinator.resume())

    @app.post("/api/replay/toggle")
    async def toggle_replay():
        """Pause/Resume button."""
        return replay_state(coordinator.toggle_pause())

    @app.post("/api/replay/stop")
    async def stop_replay():
        return replay_state(coordinator.stop())

    @app.post("/api/replay/seek")
    async def seek_replay(request: SeekRequest):
        """Seek by virtual time, or by absolute timestamp (optionally playing)."""
        if request.timestamp is not None:
            frame = coordinator.seek_to_timestamp(request.timestamp, request.play)
        elif request.virtual_time is not None:
            frame = coordinator.seek(request.virtual_time)
        else:
            raise HTTPException(status_code=422, detail="virtual_time or timestamp required")

        return {
            "frame": frame.to_dict() if frame else None,
            **replay_state(frame is not None),
        }

    @app.post("/api/replay/speed")
    async def set_speed(request: SpeedRequest):
        speed = coordinator.set_speed(request.speed)
        return {"speed": speed, **replay_state()}

    @app.get("/api/replay/series")
    async def get_series():
        """Progress chart data."""
        return coordinator.series.to_dict()

    @app.get("/api/replay/overlay")
    async def get_overlay():
        segments = coordinator.overlay.segments
        return {
            "visible": coordinator.overlay.visible,
            "before": segments.before if segments else "",
            "selected": segments.selected if segments else "",
            "after": segments.after if segments else "",
            "caret": segments.caret if segments else 0,
        }

    @app.get("/api/replay/log")
    async def get_log():
        """Text log rows, for seeking by timestamp."""
        return {"entries": [e.to_dict() for e in coordinator.log_entries()]}

    # ==================== Documents ====================

    @app.get("/api/documents")
    async def list_documents():
        active = coordinator.documents.get_active_document()
        return {
            "active": active.id if active else None,
            "documents": [d.summary() for d in coordinator.documents.list_documents()],
        }

    @app.post("/api/documents/{document_id}/select")
    async def select_document(document_id: str):
        """Switch the viewed document. Stops an active replay."""
        try:
            coordinator.select_document(document_id)
        except DocumentNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return replay_state()

    @app.delete("/api/documents/{document_id}/logs")
    async def clear_logs(document_id: str):
        try:
            coordinator.clear_logs(document_id)
        except DocumentNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return replay_state()

    # ==================== Metrics ====================

    @app.get("/metrics", response_class=PlainTextResponse)
    async def metrics():
        return PlainTextResponse(
            format_prometheus(registry.get_all_metrics()),
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    # ==================== WebSocket ====================

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """WebSocket for replay frames."""
        await websocket.accept()
        broadcaster.connections.append(websocket)

        try:
            while True:
                data = await websocket.receive_text()
                message = json.loads(data)

                if message.get("type") == "ping":
                    await websocket.send_json({"type": "pong"})

        except WebSocketDisconnect:
            if websocket in broadcaster.connections:
                broadcaster.connections.remove(websocket)
        except Exception as e:
            logger.error(f"WebSocket error: {e}")
            if websocket in broadcaster.connections:
                broadcaster.connections.remove(websocket)
