"""
Cache-aside retrieval.

    value, cached = CacheAsideStore(store, Page).get_or_compute(
        key, ttl_minutes=1440, use_cache=True, compute_fn=lambda: build_page(uri))

With use_cache=True a stored value is returned as-is (marked cached) and
compute_fn is not called. Otherwise, and on any miss, compute_fn runs and
its result overwrites the stored value. There is no locking: concurrent
misses on one key each compute and write, and the last write wins.

Expiry is left entirely to the store's TTL.
"""

from typing import Callable, Generic, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .store import KeyValueStore
from .exceptions import StoreError
from .logger import get_module_logger

logger = get_module_logger("cache")

T = TypeVar("T", bound=BaseModel)

# Stored values are pretty-printed JSON
JSON_INDENT = 2


class CacheAsideStore(Generic[T]):
    """Wraps a compute function with read-through/write-through caching."""

    def __init__(self, store: KeyValueStore, model: Type[T]):
        self.store = store
        self.model = model

    def read(self, key: str) -> Optional[T]:
        """Stored value for key, or None on miss, store failure or bad payload."""
        try:
            payload = self.store.get(key)
        except StoreError as e:
            logger.warning(f"Store read failed, treating as miss: {e.message}")
            return None

        if payload is None:
            logger.debug(f"Cache miss for key: {key}")
            return None

        try:
            value = self.model.model_validate_json(payload)
        except ValidationError as e:
            logger.warning(f"Discarding malformed cached value for {key}: {e.error_count()} errors")
            return None

        logger.info(f"Cache hit for key: {key}")
        return value

    def write(self, key: str, value: T, ttl_minutes: int) -> bool:
        """Store value under key; failures are logged and reported as False."""
        payload = value.model_dump_json(indent=JSON_INDENT).encode('utf-8')
        try:
            self.store.set(key, payload, ttl_minutes)
        except StoreError as e:
            logger.warning(f"Store write failed for {key}: {e.message}")
            return False

        logger.debug(f"Cached {key} for {ttl_minutes} minutes")
        return True

    def get_or_compute(
        self,
        key: str,
        ttl_minutes: int,
        use_cache: bool,
        compute_fn: Callable[[], T]
    ) -> tuple[T, bool]:
        """
        Return (value, served_from_cache).

        Args:
            key: Store key
            ttl_minutes: Lifetime of a freshly written value
            use_cache: False skips the read and always recomputes
            compute_fn: Builds a fresh value

        Returns:
            The cached value (with its cached flag set) and True, or the
            freshly computed value and False
        """
        if use_cache:
            cached = self.read(key)
            if cached is not None:
                if hasattr(cached, "mark_cached"):
                    cached.mark_cached()
                return cached, True

        value = compute_fn()
        self.write(key, value, ttl_minutes)
        return value, False
