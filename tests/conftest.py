"""Global pytest configuration and fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from stack.config import Settings
from stack.media.registry import SchemeRegistry
from stack.storage.base import (
    BlobMetadata,
    BlobNotFoundError,
    BlobStore,
    BlobStoreError,
    normalize_key,
)


class MemoryBlobStore(BlobStore):
    """In-memory blob store recording calls, with injectable failures."""

    storage_type = "memory"

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.fail_on: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    def _record(self, operation: str, key: str) -> str:
        key = normalize_key(key)
        self.calls.append((operation, key))
        if operation in self.fail_on:
            raise BlobStoreError(f"{operation} failed for {key}")
        return key

    def operations(self, operation: str) -> list[str]:
        return [key for op, key in self.calls if op == operation]

    def get(self, key: str) -> bytes:
        key = self._record("get", key)
        if key not in self.objects:
            raise BlobNotFoundError(f"{key} not found")
        return self.objects[key]

    def stat(self, key: str) -> BlobMetadata:
        key = self._record("stat", key)
        if key not in self.objects:
            raise BlobNotFoundError(f"{key} not found")
        return BlobMetadata.from_modified(len(self.objects[key]))

    def set(self, key: str, content: bytes) -> None:
        key = self._record("set", key)
        self.objects[key] = bytes(content)

    def remove(self, key: str) -> None:
        key = self._record("remove", key)
        if self.objects.pop(key, None) is None:
            raise BlobNotFoundError(f"{key} not found")


@pytest.fixture
def memory_store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def registry(memory_store: MemoryBlobStore) -> SchemeRegistry:
    """Registry with the memory store bound to media://."""
    registry = SchemeRegistry()
    registry.register("media", memory_store)
    return registry


@pytest.fixture
def local_settings(tmp_path: Path) -> Settings:
    """Settings selecting a local store rooted at a temporary directory."""
    return Settings(
        media_bucket=f"file://{tmp_path}",
        media_path="wp-content/uploads",
        media_root=str(tmp_path),
    )
