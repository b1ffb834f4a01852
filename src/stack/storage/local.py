"""Local filesystem blob storage.

Stores each key as a file below the base directory:
    {base_path}/{key}

Writes go to a temporary file in the target directory which is then
renamed over the key, so a failed write never leaves a partial object.
"""

from __future__ import annotations

import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from stack.storage.base import (
    BlobMetadata,
    BlobNotFoundError,
    BlobStore,
    BlobStoreError,
    normalize_key,
)

logger = logging.getLogger(__name__)


def _timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


def _default_file_mode() -> int:
    """Mode a plain open() would create files with under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


class LocalBlobStore(BlobStore):
    """Local filesystem blob storage backend."""

    storage_type = "local"

    def __init__(self, base_path: str | Path):
        """Initialize local blob storage.

        Args:
            base_path: Base directory for blob storage
        """
        self.base_path = Path(base_path)

    def _get_blob_path(self, key: str) -> Path:
        """Map a key to its file, refusing keys that escape the base directory."""
        path = self.base_path / normalize_key(key)
        root = self.base_path.resolve()
        resolved = path.resolve()
        if resolved != root and root not in resolved.parents:
            raise BlobStoreError(f"Key escapes storage root: {key}")
        return path

    def get(self, key: str) -> bytes:
        """Read blob content from the local filesystem."""
        blob_path = self._get_blob_path(key)
        if not blob_path.is_file():
            raise BlobNotFoundError(f"{key} not found")

        try:
            return blob_path.read_bytes()
        except FileNotFoundError as exc:
            raise BlobNotFoundError(f"{key} not found") from exc
        except OSError as exc:
            raise BlobStoreError(f"{key} get failed: {exc}") from exc

    def stat(self, key: str) -> BlobMetadata:
        """Read blob metadata with a single stat call."""
        blob_path = self._get_blob_path(key)
        try:
            st = blob_path.stat()
        except FileNotFoundError as exc:
            raise BlobNotFoundError(f"{key} not found") from exc
        except OSError as exc:
            raise BlobStoreError(f"{key} stat failed: {exc}") from exc

        if not blob_path.is_file():
            raise BlobNotFoundError(f"{key} not found")

        return BlobMetadata(
            size=st.st_size,
            created_at=_timestamp(st.st_ctime),
            modified_at=_timestamp(st.st_mtime),
            accessed_at=_timestamp(st.st_atime),
        )

    def set(self, key: str, content: bytes) -> None:
        """Write blob content, creating parent directories as needed."""
        blob_path = self._get_blob_path(key)
        directory = blob_path.parent

        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise BlobStoreError(f"Could not create directory '{directory}': {exc}") from exc

        fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{blob_path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                # mkstemp creates 0600 files; media must stay readable by the web server
                os.fchmod(f.fileno(), _default_file_mode())
                f.write(content)
            os.replace(tmp_name, blob_path)
        except OSError as exc:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass  # Already renamed or never created
            raise BlobStoreError(f"Could not write blob to key '{key}': {exc}") from exc

        logger.debug(f"Stored blob {key} at {blob_path} ({len(content)} bytes)")

    def remove(self, key: str) -> None:
        """Delete a blob from the local filesystem."""
        blob_path = self._get_blob_path(key)
        try:
            blob_path.unlink()
        except FileNotFoundError as exc:
            raise BlobNotFoundError(f"{key} not found") from exc
        except OSError as exc:
            raise BlobStoreError(f"Could not remove blob at key '{key}': {exc}") from exc

        logger.debug(f"Deleted blob at {blob_path}")
