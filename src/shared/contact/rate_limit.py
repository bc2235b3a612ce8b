"""Rate limiting stores for contact form submissions.

Each store keeps at most one entry per client key (the time of the last
accepted submission). hit() is the only write path: it checks the window and
records the new timestamp as one step.
"""

import os
import json
import logging
import tempfile
from pathlib import Path
from threading import Lock
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class RateLimitStore:
    """Single-writer interface for the per-client rate limit table."""

    def hit(self, key: str, now: float, window_seconds: float) -> bool:
        """
        Record a submission attempt for key.

        Args:
            key: Client identifier (IP address)
            now: Current Unix timestamp
            window_seconds: Minimum seconds between accepted submissions

        Returns:
            True if the submission is allowed (and was recorded),
            False if the previous one is still inside the window
        """
        raise NotImplementedError

    def last_seen(self, key: str) -> Optional[float]:
        raise NotImplementedError

    def prune(self, older_than: float) -> int:
        """Drop entries with a timestamp before older_than. Returns how many were removed."""
        raise NotImplementedError

    def snapshot(self) -> Dict[str, float]:
        raise NotImplementedError


class InMemoryRateLimitStore(RateLimitStore):
    """Process-local store guarded by a lock. Suitable for a single worker."""

    def __init__(self):
        self._entries: Dict[str, float] = {}
        self._lock = Lock()

    def hit(self, key: str, now: float, window_seconds: float) -> bool:
        with self._lock:
            last = self._entries.get(key)
            if last is not None and now - last < window_seconds:
                return False
            self._entries[key] = now
            return True

    def last_seen(self, key: str) -> Optional[float]:
        with self._lock:
            return self._entries.get(key)

    def prune(self, older_than: float) -> int:
        with self._lock:
            stale = [key for key, ts in self._entries.items() if ts < older_than]
            for key in stale:
                del self._entries[key]
            return len(stale)

    def snapshot(self) -> Dict[str, float]:
        with self._lock:
            return dict(self._entries)


class JsonFileRateLimitStore(RateLimitStore):
    """
    Flat JSON file store: {"<ip>": <unix timestamp>, ...}.

    Read-modify-write cycles are serialized within this process and the file
    is replaced atomically. Separate processes sharing the file are
    last-writer-wins; a read racing another process's write can admit one
    extra submission. Use the database store for multi-process deployments.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = Lock()

    def _load(self) -> Dict[str, float]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read rate limit file {self.path}: {str(e)}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed rate limit file {self.path}")
            return {}
        entries = {}
        for key, value in data.items():
            try:
                entries[str(key)] = float(value)
            except (TypeError, ValueError):
                continue
        return entries

    def _save(self, entries: Dict[str, float]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".rate_limit.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump({key: int(ts) if float(ts).is_integer() else ts for key, ts in entries.items()}, f)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def hit(self, key: str, now: float, window_seconds: float) -> bool:
        with self._lock:
            entries = self._load()
            last = entries.get(key)
            if last is not None and now - last < window_seconds:
                return False
            entries[key] = now
            self._save(entries)
            return True

    def last_seen(self, key: str) -> Optional[float]:
        with self._lock:
            return self._load().get(key)

    def prune(self, older_than: float) -> int:
        with self._lock:
            entries = self._load()
            kept = {key: ts for key, ts in entries.items() if ts >= older_than}
            removed = len(entries) - len(kept)
            if removed:
                self._save(kept)
            return removed

    def snapshot(self) -> Dict[str, float]:
        with self._lock:
            return self._load()
