from __future__ import annotations

import asyncio
import html
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse
from pydantic import BaseModel

from .alerts import AlertSink
from .broadcast import BroadcastHub, ReplayLedger
from .config import RelaySettings
from .mirror import LocalMirror, UnsafeFilenameError
from .models import LocationRecord
from .remote_store import FirebaseRemoteStore, RemoteStore
from .sync import SyncEngine

logger = logging.getLogger(__name__)


class HealthOut(BaseModel):
    status: str
    connections: int
    time_utc: datetime

    model_config = {
        "json_schema_extra": {
            "examples": [{"status": "ok", "connections": 2, "time_utc": "2026-02-18T12:00:00Z"}]
        }
    }


def render_index(image_files: list[str], location: Optional[LocationRecord]) -> str:
    items = "\n".join(
        f'<li><a href="/image/{html.escape(name, quote=True)}">{html.escape(name)}</a></li>'
        for name in image_files
    )
    where = f"{location.latitude}, {location.longitude}" if location else "unknown"
    return (
        "<!doctype html>\n<html><head><title>Guardian Gesture</title></head><body>\n"
        f"<h1>Emergency frames</h1>\n<p>Last known location: {html.escape(where)}</p>\n"
        f"<ul>\n{items}\n</ul>\n</body></html>\n"
    )


def create_app(
    cfg: RelaySettings,
    store: Optional[RemoteStore] = None,
    alert_sink: Optional[AlertSink] = None,
) -> FastAPI:
    """
    Create the relay HTTP + WebSocket app.

    `store` and `alert_sink` are injectable so tests can run without Firebase or audio.
    """
    mirror = LocalMirror(cfg.mirror_dir, suffix=cfg.image_suffix)
    remote: RemoteStore = store if store is not None else FirebaseRemoteStore(cfg)
    sink = alert_sink if alert_sink is not None else AlertSink(title=cfg.notification_title)

    hub = BroadcastHub(
        mirror,
        remote,
        ReplayLedger(),
        poll_interval=cfg.location_poll_interval_sec,
        window_minutes=cfg.recency_window_minutes,
        candidates=cfg.replay_candidates,
    )
    engine = SyncEngine(
        remote,
        mirror,
        hub,
        sink,
        prefix=cfg.image_prefix,
        suffix=cfg.image_suffix,
        interval=cfg.sync_interval_sec,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Start the sync timer on startup; tear everything down on shutdown."""
        mirror.ensure()
        logger.info("Mirroring %s%s into %s", cfg.image_prefix, "*" + cfg.image_suffix, mirror.root)
        engine.start()
        yield
        logger.info("Shutting down relay")
        await engine.stop()
        await hub.close()
        await remote.aclose()

    app = FastAPI(
        title="Alert Relay",
        version="0.1.0",
        description="Mirrors emergency frames from the cloud and relays them to live viewers.",
        lifespan=lifespan,
    )
    app.state.settings = cfg
    app.state.mirror = mirror
    app.state.hub = hub
    app.state.engine = engine

    if cfg.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cfg.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/", response_class=HTMLResponse)
    async def index():
        try:
            image_files = await asyncio.to_thread(mirror.list)
        except OSError as e:
            logger.error("Error reading local folder: %s", e)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR) from e

        location = None
        try:
            location = LocationRecord.from_document(await remote.fetch_location())
        except Exception:
            logger.exception("Location fetch failed while rendering index")
        return HTMLResponse(render_index(image_files, location))

    @app.get("/health", response_model=HealthOut, tags=["health"])
    def health() -> HealthOut:
        """Liveness check plus the number of live viewers."""
        return HealthOut(
            status="ok",
            connections=hub.connection_count,
            time_utc=datetime.now(timezone.utc),
        )

    @app.get("/image/{filename}")
    def image(filename: str):
        try:
            path = mirror.path_for(filename)
        except UnsafeFilenameError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid filename") from e
        if not path.is_file():
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")
        return FileResponse(path, media_type="image/jpeg")

    @app.websocket("/ws")
    async def events(websocket: WebSocket):
        """
        Live event channel. Server -> client only; client messages are ignored.

        The viewer's poller is torn down as soon as the socket closes.
        """
        await websocket.accept()
        conn = await hub.connect()

        async def pump() -> None:
            while True:
                event = await conn.next_event()
                await websocket.send_json(event.model_dump(mode="json"))

        async def drain() -> None:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    return

        tasks = [asyncio.create_task(pump()), asyncio.create_task(drain())]
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                exc = task.exception()
                if exc is not None and not isinstance(exc, WebSocketDisconnect):
                    logger.warning("Viewer %s channel closed with error: %s", conn.id, exc)
        finally:
            for task in tasks:
                task.cancel()
            await hub.disconnect(conn)

    return app
