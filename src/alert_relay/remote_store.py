from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Protocol

import httpx

from .config import RelaySettings
from .models import RemoteObject

logger = logging.getLogger(__name__)


class RemoteStoreError(RuntimeError):
    """A remote list/download/fetch failed or timed out."""


class RemoteStore(Protocol):
    """
    What the relay needs from the cloud side.

    - an object store holding frames under a prefix
    - a document store holding one `location` document
    """

    async def list_objects(self, prefix: str) -> list[RemoteObject]: ...

    async def download(self, name: str) -> bytes: ...

    async def fetch_location(self) -> Optional[Any]: ...

    async def aclose(self) -> None: ...


class FirebaseRemoteStore:
    """
    RemoteStore backed by Firebase Storage (frames) + Realtime Database (location).

    The storage SDK is blocking, so calls run in a worker thread with a timeout.
    The location document is read over the RTDB REST API with httpx.
    """

    def __init__(self, cfg: RelaySettings, http_client: Optional[httpx.AsyncClient] = None) -> None:
        self._cfg = cfg
        self._timeout = cfg.remote_timeout_sec
        self._bucket = None
        self._http = http_client or httpx.AsyncClient(timeout=cfg.remote_timeout_sec)

    def _get_bucket(self):
        if self._bucket is None:
            import firebase_admin
            from firebase_admin import credentials, storage

            if not firebase_admin._apps:
                cred = credentials.Certificate(self._cfg.firebase_credentials)
                firebase_admin.initialize_app(
                    cred,
                    {
                        "storageBucket": self._cfg.storage_bucket,
                        "databaseURL": self._cfg.database_url,
                    },
                )
                logger.info("Firebase initialized for bucket %s", self._cfg.storage_bucket)
            self._bucket = storage.bucket()
        return self._bucket

    async def _call(self, what: str, fn, *args):
        try:
            return await asyncio.wait_for(asyncio.to_thread(fn, *args), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise RemoteStoreError(f"{what} timed out after {self._timeout}s") from e
        except Exception as e:
            raise RemoteStoreError(f"{what} failed: {e}") from e

    def _list_blocking(self, prefix: str) -> list[RemoteObject]:
        bucket = self._get_bucket()
        return [
            RemoteObject(name=blob.name, size=blob.size, updated=blob.updated)
            for blob in bucket.list_blobs(prefix=prefix)
        ]

    def _download_blocking(self, name: str) -> bytes:
        return self._get_bucket().blob(name).download_as_bytes()

    async def list_objects(self, prefix: str) -> list[RemoteObject]:
        return await self._call(f"list {prefix!r}", self._list_blocking, prefix)

    async def download(self, name: str) -> bytes:
        return await self._call(f"download {name!r}", self._download_blocking, name)

    async def fetch_location(self) -> Optional[Any]:
        """Return the raw `location` document (JSON value or None)."""
        try:
            resp = await self._http.get(self._cfg.location_url)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            raise RemoteStoreError(f"location fetch returned {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise RemoteStoreError(f"location fetch failed: {e}") from e

    async def aclose(self) -> None:
        await self._http.aclose()
