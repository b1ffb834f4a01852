"""Base blob storage interface.

Defines the key/value contract every media storage backend implements
and the error taxonomy shared by the storage and media layers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone


class BlobStoreError(OSError):
    """Backend failure other than a missing key (permission, network, decode)."""


class BlobNotFoundError(BlobStoreError, FileNotFoundError):
    """The requested key has no backing object."""


class ConfigurationError(ValueError):
    """The configured storage location cannot be served."""


def normalize_key(key: str) -> str:
    """Return the canonical form of a blob key (leading slashes trimmed)."""
    return key.lstrip("/")


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class BlobMetadata:
    """Metadata for a stored blob."""

    size: int = 0
    created_at: datetime = field(default_factory=_now)
    modified_at: datetime = field(default_factory=_now)
    accessed_at: datetime = field(default_factory=_now)

    @classmethod
    def from_modified(cls, size: int, modified_at: datetime | None = None) -> BlobMetadata:
        """Build metadata for backends that only track a modification time."""
        modified = modified_at or _now()
        return cls(size=size, created_at=modified, modified_at=modified, accessed_at=modified)


class BlobStore(ABC):
    """Abstract base class for blob storage backends.

    All operations are synchronous and block until the backend responds.
    Keys are slash-delimited strings relative to the backend root; any
    hierarchy is purely lexical.
    """

    #: Short backend name, used in log messages and the CLI
    storage_type: str = ""

    @abstractmethod
    def get(self, key: str) -> bytes:
        """Return the full contents stored under ``key``.

        Raises:
            BlobNotFoundError: If the key has no backing object
            BlobStoreError: On any other backend failure
        """
        ...

    @abstractmethod
    def stat(self, key: str) -> BlobMetadata:
        """Return size and timestamps for ``key``.

        Raises:
            BlobNotFoundError: If the key has no backing object
            BlobStoreError: On any other backend failure
        """
        ...

    @abstractmethod
    def set(self, key: str, content: bytes) -> None:
        """Create or fully overwrite the object stored under ``key``.

        Raises:
            BlobStoreError: If the content could not be committed
        """
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete the object stored under ``key``.

        Raises:
            BlobNotFoundError: If the key has no backing object
            BlobStoreError: On any other backend failure
        """
        ...

    def exists(self, key: str) -> bool:
        """Check if an object is stored under ``key``."""
        try:
            self.stat(key)
        except BlobNotFoundError:
            return False
        return True
