"""
Key-value stores with per-entry time-to-live.

Backends:
  RedisStore : production store; one pooled client per process
  FileStore  : one JSON file per key, for single-machine use without Redis
  MemoryStore: in-process dict, for tests and local runs

Backends raise StoreError on connection or payload problems; the
cache-aside layer decides how to degrade.
"""

import hashlib
import json
import threading
import time
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

import redis

from .config import Settings, get_settings
from .exceptions import StoreError, ConfigError
from .logger import get_module_logger

logger = get_module_logger("store")


class KeyValueStore(ABC):
    """Abstract base class for TTL key-value stores."""

    backend = "abstract"

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """
        Read a value.

        Returns:
            The stored bytes, or None when the key is missing or expired

        Raises:
            StoreError: if the store cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: bytes, ttl_minutes: int) -> bool:
        """
        Replace the value under key; it expires after ttl_minutes.

        Returns:
            True once written

        Raises:
            StoreError: if the store cannot be written
        """
        pass

    def close(self) -> None:
        """Release connections or handles held by the store."""
        pass


class RedisStore(KeyValueStore):
    """Redis-backed store using redis-py's connection pool."""

    backend = "redis"

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        socket_timeout: Optional[float] = 5.0,
        client=None
    ):
        self.url = url
        # An injected client lets tests run without a server
        self.client = client if client is not None else redis.Redis.from_url(
            url,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )

    def get(self, key: str) -> Optional[bytes]:
        try:
            return self.client.get(key)
        except redis.RedisError as e:
            raise StoreError(f"Redis GET {key} failed: {e}", backend=self.backend)

    def set(self, key: str, value: bytes, ttl_minutes: int) -> bool:
        try:
            self.client.set(key, value, ex=timedelta(minutes=ttl_minutes))
        except redis.RedisError as e:
            raise StoreError(f"Redis SET {key} failed: {e}", backend=self.backend)
        return True

    def close(self) -> None:
        self.client.close()
        logger.info(f"Closed Redis client for {self.url}")


class FileStore(KeyValueStore):
    """
    File-based store.

    Each key is one JSON file holding the value and its expiry time.
    Expired files are deleted when read.
    """

    backend = "file"

    def __init__(self, cache_dir: Optional[str] = None):
        if cache_dir is None:
            cache_dir = Path.cwd() / "page_cache"

        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"File store initialized at: {self.cache_dir}")

    def _path_for(self, key: str) -> Path:
        # Readable prefix for auditing, hash suffix so "a/b" and "a_b" differ
        safe_name = "".join(c if c.isalnum() or c in '-_.' else '_' for c in key)[:80]
        digest = hashlib.md5(key.encode('utf-8')).hexdigest()[:12]
        return self.cache_dir / f"{safe_name}-{digest}.json"

    def get(self, key: str) -> Optional[bytes]:
        cache_file = self._path_for(key)
        if not cache_file.exists():
            return None

        try:
            data = json.loads(cache_file.read_text(encoding='utf-8'))
            expires_at = datetime.fromisoformat(data['expires_at'])
            value = data["value"].encode("utf-8")
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            raise StoreError(f"Unreadable cache file {cache_file}: {e}", backend=self.backend)

        if expires_at <= datetime.now(timezone.utc):
            logger.debug(f"Expired entry for key: {key}")
            cache_file.unlink(missing_ok=True)
            return None

        return value

    def set(self, key: str, value: bytes, ttl_minutes: int) -> bool:
        cache_file = self._path_for(key)
        now = datetime.now(timezone.utc)
        entry = {
            "key": key,
            "created_at": now.isoformat(),
            "expires_at": (now + timedelta(minutes=ttl_minutes)).isoformat(),
            "value": value.decode('utf-8'),
        }

        # Write then rename so readers never see a half-written file
        tmp_file = cache_file.with_suffix('.tmp')
        try:
            tmp_file.write_text(json.dumps(entry, indent=2), encoding='utf-8')
            tmp_file.replace(cache_file)
        except OSError as e:
            raise StoreError(f"Cannot write {cache_file}: {e}", backend=self.backend)
        return True


class MemoryStore(KeyValueStore):
    """In-process store; entries expire by the given clock (seconds)."""

    backend = "memory"

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[bytes, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: bytes, ttl_minutes: int) -> bool:
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl_minutes * 60)
        return True

    def __len__(self) -> int:
        return len(self._entries)


def create_store(settings: Settings) -> KeyValueStore:
    """Instantiate the backend named by settings.store_backend."""
    if settings.store_backend == "redis":
        return RedisStore(url=settings.redis_url, socket_timeout=settings.redis_socket_timeout)
    if settings.store_backend == "file":
        return FileStore(cache_dir=settings.cache_dir)
    if settings.store_backend == "memory":
        return MemoryStore()
    raise ConfigError(f"Unknown store backend: {settings.store_backend}")


# Process-wide store, created at startup and closed at shutdown
_default_store: Optional[KeyValueStore] = None


def init_default_store(settings: Settings) -> KeyValueStore:
    """Create the process-wide store (replacing and closing any previous one)."""
    global _default_store
    if _default_store is not None:
        _default_store.close()
    _default_store = create_store(settings)
    logger.info(f"Default store: {_default_store.backend}")
    return _default_store


def get_default_store() -> KeyValueStore:
    """Get the process-wide store, creating it from current settings if needed."""
    global _default_store
    if _default_store is None:
        _default_store = create_store(get_settings())
    return _default_store


def close_default_store() -> None:
    global _default_store
    if _default_store is not None:
        _default_store.close()
        _default_store = None
