from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from typing import Optional

from .mirror import LocalMirror
from .models import LocationRecord, RelayEvent
from .recency import filter_recent
from .remote_store import RemoteStore

logger = logging.getLogger(__name__)

_conn_ids = itertools.count(1)


class ReplayLedger:
    """
    Process-wide record of frames already replayed to some viewer.

    A filename is replayed at most once per process lifetime, to whichever viewer
    connects first while it is in the recent window. Never pruned.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()

    def claim(self, filename: str) -> bool:
        """Return True only the first time `filename` is claimed."""
        if filename in self._seen:
            return False
        self._seen.add(filename)
        return True

    def __contains__(self, filename: object) -> bool:
        return filename in self._seen

    def __len__(self) -> int:
        return len(self._seen)


@dataclass(eq=False)
class Connection:
    """
    One live viewer.

    Owns an outbound queue (drained by the transport) and exactly one
    location-polling task, which must be cancelled on disconnect.
    """
    id: int = field(default_factory=lambda: next(_conn_ids))
    queue: asyncio.Queue[RelayEvent] = field(default_factory=asyncio.Queue)
    poller: Optional[asyncio.Task] = None
    closed: bool = False

    def send(self, event: RelayEvent) -> None:
        if self.closed:
            return
        self.queue.put_nowait(event)

    async def next_event(self) -> RelayEvent:
        return await self.queue.get()


class BroadcastHub:
    """
    Fan-out of relay events to live viewers.

    On connect: replay the recent window (gated by the ReplayLedger), then start
    a per-connection location poller. Live broadcasts go to every connection.
    """

    def __init__(
        self,
        mirror: LocalMirror,
        store: RemoteStore,
        ledger: Optional[ReplayLedger] = None,
        *,
        poll_interval: float = 5.0,
        window_minutes: int = 2,
        candidates: int = 10,
    ) -> None:
        self.mirror = mirror
        self.store = store
        self.ledger = ledger if ledger is not None else ReplayLedger()
        self.poll_interval = poll_interval
        self.window_minutes = window_minutes
        self.candidates = candidates
        self._connections: dict[int, Connection] = {}

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self) -> Connection:
        conn = Connection()
        self._connections[conn.id] = conn
        logger.info("Viewer %s connected (%d live)", conn.id, self.connection_count)

        await self.replay(conn)
        conn.poller = asyncio.create_task(self._poll_location(conn), name=f"location-poll-{conn.id}")
        return conn

    async def disconnect(self, conn: Connection) -> None:
        if conn.closed:
            return
        conn.closed = True
        self._connections.pop(conn.id, None)

        if conn.poller is not None:
            conn.poller.cancel()
            await asyncio.wait([conn.poller])
        logger.info("Viewer %s disconnected (%d live)", conn.id, self.connection_count)

    async def close(self) -> None:
        for conn in list(self._connections.values()):
            await self.disconnect(conn)

    def broadcast(self, event: RelayEvent) -> int:
        """Send `event` to every live viewer. Returns how many received it."""
        targets = list(self._connections.values())
        for conn in targets:
            conn.send(event)
        return len(targets)

    async def replay(self, conn: Connection) -> list[str]:
        """
        Queue the recent window for one new viewer.

        A mirror read error skips the replay for this viewer only.
        """
        try:
            files = await asyncio.to_thread(self.mirror.list)
        except OSError:
            logger.exception("Could not read mirror for viewer %s replay", conn.id)
            return []

        replayed: list[str] = []
        for name in filter_recent(files, self.window_minutes, self.candidates):
            if self.ledger.claim(name):
                conn.send(RelayEvent.new_image(name))
                replayed.append(name)

        if replayed:
            logger.info("Replayed %d frame(s) to viewer %s: %s", len(replayed), conn.id, replayed)
        return replayed

    async def push_location(self, conn: Connection) -> Optional[LocationRecord]:
        """One location poll for one viewer. Errors are logged, never raised."""
        try:
            doc = await self.store.fetch_location()
        except Exception:
            logger.exception("Location fetch failed for viewer %s", conn.id)
            return None

        record = LocationRecord.from_document(doc)
        if record is None:
            logger.error("Latitude or longitude missing from location document: %r", doc)
            return None

        conn.send(RelayEvent.location(record))
        return record

    async def _poll_location(self, conn: Connection) -> None:
        while not conn.closed:
            await self.push_location(conn)
            await asyncio.sleep(self.poll_interval)
