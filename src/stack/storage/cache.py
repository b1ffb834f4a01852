"""Cache-backed blob storage.

Keeps blob contents in Redis under a namespaced key:
    {namespace}:{key}

Redis is not a durable store, so this backend suits ephemeral and test
deployments. There is no metadata API independent of the value: ``stat``
fetches the value to report its size and uses the current time for all
timestamps.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import redis

from stack.storage.base import (
    BlobMetadata,
    BlobNotFoundError,
    BlobStore,
    BlobStoreError,
    normalize_key,
)

if TYPE_CHECKING:
    from redis import Redis

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "stack:media"


class CacheBlobStore(BlobStore):
    """Redis blob storage backend."""

    storage_type = "objcache"

    def __init__(self, client: Redis, namespace: str = DEFAULT_NAMESPACE, ttl: int | None = None):
        """Initialize cache blob storage.

        Args:
            client: Redis client; must not decode responses
            namespace: Prefix isolating media keys from other cache users
            ttl: Expiry in seconds for stored blobs, None to keep them
        """
        self.client = client
        self.namespace = namespace.strip(":") or DEFAULT_NAMESPACE
        self.ttl = ttl

    @classmethod
    def from_url(
        cls, url: str, namespace: str = DEFAULT_NAMESPACE, ttl: int | None = None
    ) -> CacheBlobStore:
        """Create a store with its own connection pool."""
        client = redis.Redis.from_url(url, decode_responses=False)
        return cls(client, namespace=namespace, ttl=ttl)

    def _cache_key(self, key: str) -> str:
        return f"{self.namespace}:{normalize_key(key)}"

    def get(self, key: str) -> bytes:
        """Fetch blob content from the cache."""
        try:
            value = self.client.get(self._cache_key(key))
        except redis.RedisError as exc:
            raise BlobStoreError(f"{key} get failed: {exc}") from exc

        if value is None:
            raise BlobNotFoundError(f"{key} not found")
        return bytes(value)

    def stat(self, key: str) -> BlobMetadata:
        """Report size by fetching the value; timestamps are synthesized."""
        return BlobMetadata.from_modified(len(self.get(key)))

    def set(self, key: str, content: bytes) -> None:
        """Store blob content in the cache."""
        try:
            if self.ttl:
                self.client.setex(self._cache_key(key), self.ttl, content)
            else:
                self.client.set(self._cache_key(key), content)
        except redis.RedisError as exc:
            raise BlobStoreError(f"Could not write blob to key '{key}': {exc}") from exc

    def remove(self, key: str) -> None:
        """Delete blob content from the cache."""
        try:
            deleted = self.client.delete(self._cache_key(key))
        except redis.RedisError as exc:
            raise BlobStoreError(f"Could not remove blob at key '{key}': {exc}") from exc

        if not deleted:
            raise BlobNotFoundError(f"{key} not found")
        logger.debug(f"Deleted cached blob {key}")
