import asyncio
from typing import Any, Optional

import pytest

from alert_relay.mirror import LocalMirror
from alert_relay.models import RemoteObject


class FakeRemoteStore:
    """
    In-memory stand-in for Firebase.

    - `objects` maps object name -> bytes
    - `location` is the raw document returned by fetch_location()
    - set `fail_list`, `fail_download` (set of names) or `fail_location` to inject errors
    """

    def __init__(self, objects: Optional[dict[str, bytes]] = None, location: Any = None):
        self.objects = dict(objects or {})
        self.location = location
        self.fail_list = False
        self.fail_download: set[str] = set()
        self.fail_location = False
        self.list_calls = 0
        self.download_calls: list[str] = []
        self.location_calls = 0
        self.closed = False

    async def list_objects(self, prefix: str) -> list[RemoteObject]:
        self.list_calls += 1
        if self.fail_list:
            raise RuntimeError("listing unavailable")
        return [RemoteObject(name=n, size=len(b)) for n, b in self.objects.items() if n.startswith(prefix)]

    async def download(self, name: str) -> bytes:
        self.download_calls.append(name)
        if name in self.fail_download:
            raise RuntimeError(f"cannot download {name}")
        return self.objects[name]

    async def fetch_location(self) -> Any:
        self.location_calls += 1
        if self.fail_location:
            raise RuntimeError("location unavailable")
        return self.location

    async def aclose(self) -> None:
        self.closed = True


class RecordingSink:
    """AlertSink stand-in that records which frames raised an alert."""

    def __init__(self):
        self.triggered: list[str] = []

    async def trigger(self, filename: str) -> None:
        self.triggered.append(filename)


@pytest.fixture
def store():
    return FakeRemoteStore(location={"latitude": 6.5244, "longitude": 3.3792})


@pytest.fixture
def mirror(tmp_path):
    m = LocalMirror(tmp_path / "downloaded_images")
    m.ensure()
    return m


@pytest.fixture
def sink():
    return RecordingSink()


def _drain(conn) -> list:
    events = []
    while True:
        try:
            events.append(conn.queue.get_nowait())
        except asyncio.QueueEmpty:
            return events


@pytest.fixture
def drain():
    """Pop every event currently queued on a connection."""
    return _drain
