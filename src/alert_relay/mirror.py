from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class UnsafeFilenameError(ValueError):
    """Raised when a requested filename would escape the mirror directory."""


class LocalMirror:
    """
    The on-disk set of frames already synced from the remote store.

    Source of truth for "already downloaded": a file counts as mirrored once it
    exists under `root`. The set only grows; nothing here deletes files.
    """

    def __init__(self, root: str | os.PathLike[str], suffix: str = ".jpg") -> None:
        self.root = Path(root)
        self.suffix = suffix

    def ensure(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, filename: str) -> Path:
        """
        Resolve `filename` inside the mirror.

        Raises UnsafeFilenameError for anything that is not a plain file name.
        """
        if not filename or filename in (".", "..") or "/" in filename or "\\" in filename or "\x00" in filename:
            raise UnsafeFilenameError(f"Unsafe filename: {filename!r}")

        root = self.root.resolve()
        path = (root / filename).resolve()
        if path.parent != root:
            raise UnsafeFilenameError(f"Filename escapes mirror: {filename!r}")
        return path

    def exists(self, filename: str) -> bool:
        try:
            return self.path_for(filename).is_file()
        except UnsafeFilenameError:
            return False

    def list(self) -> list[str]:
        """
        Mirrored frames in directory listing order (NOT sorted by time).

        OSError propagates; callers decide whether to log/skip.
        """
        return [name for name in os.listdir(self.root) if name.endswith(self.suffix)]

    def write(self, filename: str, data: bytes) -> Path:
        """
        Atomically write one frame.

        Data lands in a hidden .part sibling first, so a failed write never leaves
        a file that exists() would report as already synced.
        """
        target = self.path_for(filename)
        tmp = target.with_name(f".{target.name}.part")
        try:
            with open(tmp, "wb") as f:
                f.write(data)
            os.replace(tmp, target)
        except OSError:
            try:
                tmp.unlink()
            except FileNotFoundError:
                pass
            raise
        logger.debug("Wrote %d bytes to %s", len(data), target)
        return target
