import json
import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from token_provider.exceptions import CacheIOError

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


class MemoryCache:
    """
    Process-lifetime key -> value map with a per-key expiry.
    Python's dict operations are atomic so concurrent coroutines never see a torn entry.
    """

    def __init__(
        self, ttl_seconds: int = DEFAULT_TTL_SECONDS, max_entries: int = 10000, clock: Callable[[], float] = time.time
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._values: Dict[str, Any] = {}
        self._expires_at: Dict[str, float] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Any]:
        expires_at = self._expires_at.get(key)
        if expires_at is None:
            self.misses += 1
            return None

        if self._clock() >= expires_at:
            self.delete(key)
            self.misses += 1
            logger.debug(f"Memory cache entry expired for key {key}")
            return None

        self.hits += 1
        return self._values[key]

    def set(self, key: str, value: Any, expires_at: Optional[float] = None) -> None:
        self._values[key] = value
        self._expires_at[key] = expires_at if expires_at is not None else self._clock() + self.ttl_seconds

        # Limit cache size to prevent memory issues (keep last 100 entries)
        if len(self._values) > self.max_entries:
            oldest_keys = sorted(self._expires_at.items(), key=lambda x: x[1])[: len(self._values) - 100]
            for k, _ in oldest_keys:
                self.delete(k)

    def delete(self, key: str) -> None:
        self._values.pop(key, None)
        self._expires_at.pop(key, None)

    def clear(self) -> None:
        self._values.clear()
        self._expires_at.clear()

    def __len__(self) -> int:
        return len(self._values)


class FileCacheStore:
    """
    One JSON file per cache key: {"data": <value>, "expiry": <epoch-ms>}.
    I/O failures are raised as CacheIOError, never reported as a miss.
    """

    def __init__(self, cache_dir: str, ttl_seconds: int = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.time):
        self.cache_dir = Path(cache_dir)
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        try:
            self.cache_dir.mkdir(exist_ok=True, parents=True)
        except OSError as e:
            raise CacheIOError(f"Cannot create cache directory {self.cache_dir}: {e}") from e
        logger.info(f"File cache initialized at {self.cache_dir.absolute()}")

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _get_cache_path(self, key: str) -> Path:
        sanitized_key = key.replace("/", "_").replace("\\", "_")
        return self.cache_dir / f"{sanitized_key}.json"

    def read(self, key: str) -> Optional[Any]:
        entry = self.read_entry(key)
        return entry[0] if entry else None

    def read_entry(self, key: str) -> Optional[Tuple[Any, int]]:
        """Return (data, expiry in epoch-ms) for a live entry, deleting the file if it has expired"""
        cache_path = self._get_cache_path(key)
        if not cache_path.exists():
            return None

        try:
            with open(cache_path, "r", encoding="utf-8") as f:
                entry = json.load(f)
            data, expiry = entry["data"], int(entry["expiry"])
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise CacheIOError(f"Error reading cache file {cache_path}: {e}") from e

        if self._now_ms() < expiry:
            logger.debug(f"Reading cached data from file for key: {key}")
            return data, expiry

        logger.info(f"Cache expired for key: {key}. Deleting file.")
        self.delete(key)
        return None

    def write(self, key: str, value: Any) -> None:
        cache_path = self._get_cache_path(key)
        entry = {"data": value, "expiry": self._now_ms() + self.ttl_seconds * 1000}
        try:
            with open(cache_path, "w", encoding="utf-8") as f:
                json.dump(entry, f)
        except (OSError, TypeError, ValueError) as e:
            raise CacheIOError(f"Error writing cache file {cache_path}: {e}") from e
        logger.debug(f"Cached data written to file for key: {key}")

    def delete(self, key: str) -> None:
        try:
            self._get_cache_path(key).unlink(missing_ok=True)
        except OSError as e:
            raise CacheIOError(f"Error deleting cache file for key {key}: {e}") from e


class TwoTierCache:
    """
    Memory cache in front of the file store. Both tiers expire independently,
    so a false miss can happen but an expired value is never served.
    """

    def __init__(self, memory: MemoryCache, store: FileCacheStore):
        self.memory = memory
        self.store = store

    @classmethod
    def create(cls, cache_dir: str, ttl_seconds: int = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.time):
        return cls(MemoryCache(ttl_seconds, clock=clock), FileCacheStore(cache_dir, ttl_seconds, clock=clock))

    def get(self, key: str) -> Optional[Any]:
        value = self.memory.get(key)
        if value is not None:
            logger.debug(f"Memory cache hit for key {key}")
            return value

        entry = self.store.read_entry(key)
        if entry is not None and entry[0] is not None:
            value, expiry_ms = entry
            # promote with the file's own expiry so memory never outlives it
            self.memory.set(key, value, expires_at=expiry_ms / 1000)
            return value

        logger.debug(f"Cache miss for key {key}")
        return None

    def set(self, key: str, value: Any) -> None:
        self.memory.set(key, value)
        self.store.write(key, value)
