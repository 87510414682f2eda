from __future__ import annotations

import asyncio
import logging
import posixpath
from typing import Optional

from .alerts import AlertSink
from .broadcast import BroadcastHub
from .mirror import LocalMirror, UnsafeFilenameError
from .models import RelayEvent
from .remote_store import RemoteStore

logger = logging.getLogger(__name__)


class SyncEngine:
    """
    Periodic remote -> local frame sync.

    Each tick lists the remote prefix and downloads every frame the mirror does
    not have yet. A first-time download is broadcast to all viewers and raises
    the alert; re-encountering a mirrored frame does nothing.
    """

    def __init__(
        self,
        store: RemoteStore,
        mirror: LocalMirror,
        hub: BroadcastHub,
        alert_sink: Optional[AlertSink] = None,
        *,
        prefix: str = "images/",
        suffix: str = ".jpg",
        interval: float = 5.0,
    ) -> None:
        self.store = store
        self.mirror = mirror
        self.hub = hub
        self.alert_sink = alert_sink
        self.prefix = prefix
        self.suffix = suffix
        self.interval = interval
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None

    async def tick(self) -> list[str]:
        """Run one sync pass. Returns the basenames mirrored by this pass."""
        async with self._lock:
            try:
                objects = await self.store.list_objects(self.prefix)
            except Exception:
                logger.exception("Listing %s failed; skipping this tick", self.prefix)
                return []

            mirrored: list[str] = []
            for obj in objects:
                if not obj.name.endswith(self.suffix):
                    continue
                filename = posixpath.basename(obj.name)
                try:
                    if self.mirror.exists(filename):
                        continue
                except OSError:
                    logger.exception("Checking mirror for %s failed; skipping it this tick", obj.name)
                    continue
                if await self._fetch(obj.name, filename):
                    mirrored.append(filename)
            return mirrored

    async def _fetch(self, name: str, filename: str) -> bool:
        try:
            data = await self.store.download(name)
            path = await asyncio.to_thread(self.mirror.write, filename, data)
        except UnsafeFilenameError:
            logger.error("Refusing to mirror %s: unsafe filename", name)
            return False
        except Exception:
            logger.exception("Downloading %s failed", name)
            return False

        logger.info("Downloaded %s", path)
        self.hub.broadcast(RelayEvent.new_image(filename))
        if self.alert_sink is not None:
            await self.alert_sink.trigger(filename)
        return True

    async def run_forever(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.tick()
            except Exception:
                # The timer lives for the whole process; a bad tick must not end it.
                logger.exception("Image sync tick failed")

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run_forever(), name="image-sync")
            logger.info("Image sync started (every %ss, prefix %s)", self.interval, self.prefix)
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        await asyncio.wait([self._task])
        self._task = None
