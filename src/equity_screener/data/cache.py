"""
Caching layer for provider responses.
"""

import hashlib
import json
import os
import tempfile
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from equity_screener.core.exceptions import CacheError
from equity_screener.core.logging import get_logger

logger = get_logger("data.cache")


@dataclass
class CacheEntry:
    """Cache entry with absolute expiry (epoch seconds)."""

    key: str
    value: Any
    expires_at: Optional[float] = None

    def is_expired(self, now: Optional[float] = None) -> bool:
        """Check if entry is expired."""
        if self.expires_at is None:
            return False
        return (now if now is not None else time.time()) > self.expires_at

    def to_json(self) -> str:
        return json.dumps({"key": self.key, "value": self.value, "expires_at": self.expires_at})

    @classmethod
    def from_json(cls, text: str) -> "CacheEntry":
        data = json.loads(text)
        return cls(key=data["key"], value=data["value"], expires_at=data.get("expires_at"))


class DataCache:
    """
    Two-level TTL cache for JSON-serializable provider responses.

    Level 1: In-memory LRU
    Level 2: Disk cache (one JSON file per key, replaced atomically)

    Expired entries read as misses; there is no background eviction.
    """

    def __init__(
        self,
        cache_dir: Optional[Path] = None,
        max_memory_items: int = 1000,
        enable_disk_cache: bool = True,
    ):
        self.cache_dir = Path(cache_dir) if cache_dir else Path.home() / ".equity-screener" / "cache"
        self.max_memory_items = max_memory_items
        self.enable_disk_cache = enable_disk_cache

        self._memory_cache: dict[str, CacheEntry] = {}
        self._access_order: list[str] = []
        self._lock = threading.Lock()

        if self.enable_disk_cache:
            self.cache_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def make_key(endpoint: str, params: dict[str, Any]) -> str:
        """Canonical request fingerprint: endpoint plus all params, sorted."""
        query = "&".join(f"{k}={params[k]}" for k in sorted(params))
        return f"{endpoint}?{query}" if query else endpoint

    def _get_disk_path(self, key: str) -> Path:
        key_hash = hashlib.sha256(key.encode()).hexdigest()
        return self.cache_dir / f"{key_hash}.json"

    def get(self, key: str) -> tuple[bool, Any]:
        """
        Look up key.

        Returns (found, value). Checks memory first, then disk.
        """
        with self._lock:
            entry = self._memory_cache.get(key)
            if entry is not None:
                if not entry.is_expired():
                    if key in self._access_order:
                        self._access_order.remove(key)
                    self._access_order.append(key)
                    return True, entry.value
                del self._memory_cache[key]
                if key in self._access_order:
                    self._access_order.remove(key)

        if not self.enable_disk_cache:
            return False, None

        disk_path = self._get_disk_path(key)
        try:
            text = disk_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return False, None
        except OSError as e:
            raise CacheError(f"Failed to read cache entry for {key}: {e}") from e

        try:
            entry = CacheEntry.from_json(text)
        except (ValueError, KeyError) as e:
            logger.warning(f"Discarding corrupt cache entry for {key}: {e}")
            return False, None

        if entry.key != key or entry.is_expired():
            return False, None

        self._set_memory(key, entry)
        return True, entry.value

    def set(
        self,
        key: str,
        value: Any,
        ttl_hours: Optional[float] = None,
    ) -> None:
        """
        Store value under key, superseding any previous entry.

        Stores in both memory and disk (if enabled).
        """
        expires_at = None
        if ttl_hours is not None:
            expires_at = time.time() + ttl_hours * 3600

        entry = CacheEntry(key, value, expires_at)
        self._set_memory(key, entry)

        if self.enable_disk_cache:
            self._write_disk(key, entry)

    def _write_disk(self, key: str, entry: CacheEntry) -> None:
        disk_path = self._get_disk_path(key)
        try:
            payload = entry.to_json()
        except (TypeError, ValueError) as e:
            raise CacheError(f"Value for {key} is not JSON serializable: {e}") from e

        # Concurrent writers each rename their own temp file; last rename wins.
        fd, tmp_name = tempfile.mkstemp(dir=self.cache_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, disk_path)
        except OSError as e:
            logger.debug(f"Failed to write disk cache for {key}: {e}")
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)

    def _set_memory(self, key: str, entry: CacheEntry) -> None:
        """Set value in memory cache with LRU eviction."""
        with self._lock:
            while len(self._memory_cache) >= self.max_memory_items and key not in self._memory_cache:
                if not self._access_order:
                    break
                oldest_key = self._access_order.pop(0)
                self._memory_cache.pop(oldest_key, None)

            self._memory_cache[key] = entry

            if key in self._access_order:
                self._access_order.remove(key)
            self._access_order.append(key)

    def clear(self) -> None:
        """Clear all cache entries."""
        with self._lock:
            self._memory_cache.clear()
            self._access_order.clear()

        if self.enable_disk_cache:
            for path in self.cache_dir.glob("*.json"):
                path.unlink(missing_ok=True)

    def clear_expired(self) -> int:
        """Clear expired entries. Returns count of cleared entries."""
        cleared = 0
        now = time.time()

        with self._lock:
            expired_keys = [
                key for key, entry in self._memory_cache.items() if entry.is_expired(now)
            ]
            for key in expired_keys:
                del self._memory_cache[key]
                if key in self._access_order:
                    self._access_order.remove(key)
                cleared += 1

        if self.enable_disk_cache:
            for path in self.cache_dir.glob("*.json"):
                try:
                    entry = CacheEntry.from_json(path.read_text(encoding="utf-8"))
                except (OSError, ValueError, KeyError):
                    continue
                if entry.is_expired(now):
                    path.unlink(missing_ok=True)
                    cleared += 1

        return cleared

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            memory_count = len(self._memory_cache)

        disk_count = 0
        disk_size = 0
        if self.enable_disk_cache:
            for path in self.cache_dir.glob("*.json"):
                disk_count += 1
                disk_size += path.stat().st_size

        return {
            "memory_entries": memory_count,
            "memory_max": self.max_memory_items,
            "disk_entries": disk_count,
            "disk_size_mb": disk_size / (1024 * 1024),
            "disk_enabled": self.enable_disk_cache,
        }
