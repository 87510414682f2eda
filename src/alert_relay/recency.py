from __future__ import annotations

import os
from typing import Optional, Sequence

MIN_STEM_LEN = 6


def _hhmm(chunk: str) -> Optional[tuple[int, int]]:
    if len(chunk) != 4 or not chunk.isdigit():
        return None
    hour, minute = int(chunk[:2]), int(chunk[2:])
    if hour > 23 or minute > 59:
        return None
    return hour, minute


def extract_time(filename: Optional[str]) -> Optional[tuple[int, int]]:
    """
    Read (hour, minute) from the end of a frame filename.

    The sensor names frames <anything><HHMMSS>.jpg, so HHMM sits at stem[-6:-2].
    Names ending in a delimited 4-digit HHMM ("imgA_0100.jpg") are accepted too.

    This function is PURE and never raises: anything unreadable returns None.
    """
    if not filename or not isinstance(filename, str):
        return None

    stem, _ = os.path.splitext(filename)
    if len(stem) < MIN_STEM_LEN:
        return None

    parsed = _hhmm(stem[-6:-2])
    if parsed is not None:
        return parsed

    if not stem[-5].isdigit():
        return _hhmm(stem[-4:])
    return None


def _minutes(filename: str) -> Optional[int]:
    parsed = extract_time(filename)
    if parsed is None:
        return None
    hour, minute = parsed
    return hour * 60 + minute


def filter_recent(files: Sequence[str], window_minutes: int = 2, limit: int = 10) -> list[str]:
    """
    Select the files captured within `window_minutes` of the newest candidate.

    - candidates are the last `limit` entries, in the order given
    - the anchor is the LAST candidate by position, not the numerically latest time
    - a file is kept iff 0 <= anchor - t <= window_minutes (same day, no wraparound)
    - malformed names are dropped; a malformed anchor selects nothing
    """
    candidates = list(files)[-limit:] if limit > 0 else []
    if not candidates:
        return []

    anchor = _minutes(candidates[-1])
    if anchor is None:
        return []

    recent: list[str] = []
    for name in candidates:
        t = _minutes(name)
        if t is None:
            continue
        if 0 <= anchor - t <= window_minutes:
            recent.append(name)
    return recent
