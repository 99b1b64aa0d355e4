"""In-memory memoization of analytics results.

Entries are keyed by portfolio id and guarded by a content fingerprint of the
asset list.  A portfolio holds at most one entry: storing a result under a new
fingerprint supersedes the previous one.
"""

import copy
import hashlib
import json
import threading
from typing import Any, Iterable

import pandas as pd

from portfolio_analytics.config import SETTINGS
from portfolio_analytics.utils.logger import setup_logger

logger = setup_logger("cache")


def fingerprint_assets(assets: Iterable) -> str:
    """Content hash of an asset list, independent of list order."""
    payload = sorted((a.fingerprint_fields() for a in assets), key=lambda p: p["id"])
    blob = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.md5(blob.encode()).hexdigest()


def fingerprint_frame(data: pd.DataFrame | pd.Series | None) -> str:
    """Content hash of a return series / frame (``"none"`` when absent)."""
    if data is None:
        return "none"
    h = hashlib.md5()
    if isinstance(data, pd.DataFrame):
        h.update(json.dumps([str(c) for c in data.columns]).encode())
    else:
        h.update(str(data.name).encode())
    h.update(pd.util.hash_pandas_object(data, index=True).values.tobytes())
    return h.hexdigest()


def combine_fingerprints(*parts: str) -> str:
    return hashlib.md5("|".join(parts).encode()).hexdigest()


class ResultCache:
    """Thread-safe, one-entry-per-portfolio result cache."""

    def __init__(self, enabled: bool | None = None):
        if enabled is None:
            enabled = SETTINGS.get("cache", {}).get("enabled", True)
        self.enabled = enabled
        self._entries: dict[str, tuple[str, Any]] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

    def get(self, portfolio_id: str, fingerprint: str) -> Any | None:
        """Return a copy of the cached result, or None on a miss."""
        if not self.enabled:
            return None
        with self._lock:
            entry = self._entries.get(portfolio_id)
            if entry is None or entry[0] != fingerprint:
                self._misses += 1
                logger.debug("Cache miss: portfolio=%s", portfolio_id)
                return None
            self._hits += 1
            logger.debug("Cache hit: portfolio=%s", portfolio_id)
            return copy.deepcopy(entry[1])

    def set(self, portfolio_id: str, fingerprint: str, result: Any) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._entries[portfolio_id] = (fingerprint, copy.deepcopy(result))

    def invalidate(self, portfolio_id: str) -> bool:
        """Drop the entry for a portfolio. Returns True if one existed."""
        with self._lock:
            removed = self._entries.pop(portfolio_id, None) is not None
        if removed:
            logger.info("Cache invalidated: portfolio=%s", portfolio_id)
        return removed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> dict:
        with self._lock:
            return {"entries": len(self._entries), "hits": self._hits, "misses": self._misses}

    def __contains__(self, portfolio_id: str) -> bool:
        with self._lock:
            return portfolio_id in self._entries
