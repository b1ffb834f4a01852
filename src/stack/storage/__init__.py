"""Blob storage module for Stack media.

Provides a uniform get/stat/set/remove contract over:
- Local filesystem storage (default)
- Google Cloud Storage
- Redis-backed cache storage (ephemeral)
"""

from stack.storage.base import (
    BlobMetadata,
    BlobNotFoundError,
    BlobStore,
    BlobStoreError,
    ConfigurationError,
    normalize_key,
)
from stack.storage.cache import CacheBlobStore
from stack.storage.factory import create_blob_store
from stack.storage.gcs import GcsBlobStore
from stack.storage.local import LocalBlobStore

__all__ = [
    "BlobStore",
    "BlobMetadata",
    "BlobStoreError",
    "BlobNotFoundError",
    "ConfigurationError",
    "LocalBlobStore",
    "GcsBlobStore",
    "CacheBlobStore",
    "create_blob_store",
    "normalize_key",
]
