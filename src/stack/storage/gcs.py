"""Google Cloud Storage blob storage backend."""

from __future__ import annotations

import mimetypes
from typing import Any, cast

from google.api_core import exceptions as gcs_exceptions

from stack.storage.base import (
    BlobMetadata,
    BlobNotFoundError,
    BlobStore,
    BlobStoreError,
    normalize_key,
)


class GcsBlobStore(BlobStore):
    """GCS blob storage implementation.

    Keys map to ``{prefix}/{key}`` inside the bucket. A remote 404 on any
    operation, including ``remove``, surfaces as ``BlobNotFoundError``.
    """

    storage_type = "gcs"

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        project: str | None = None,
        credentials_path: str | None = None,
    ) -> None:
        self.bucket = bucket
        self.prefix = prefix.strip("/")
        self.project = project
        self.credentials_path = credentials_path
        self._client: Any | None = None

    def _get_client(self) -> Any:
        """Get or create GCS client."""
        if self._client is None:
            from google.cloud import storage

            if self.credentials_path:
                self._client = storage.Client.from_service_account_json(
                    self.credentials_path, project=self.project
                )
            else:
                self._client = storage.Client(project=self.project)
        return self._client

    def _object_name(self, key: str) -> str:
        """Build the object name for a key, relative to the bucket."""
        key = normalize_key(key)
        if not self.prefix:
            return key
        return f"{self.prefix}/{key}"

    def _bucket(self) -> Any:
        return self._get_client().bucket(self.bucket)

    def uri(self, key: str) -> str:
        """Return the gs:// URI for a key."""
        return f"gs://{self.bucket}/{self._object_name(key)}"

    def get(self, key: str) -> bytes:
        """Download blob content from GCS."""
        blob = self._bucket().blob(self._object_name(key))
        try:
            return cast(bytes, blob.download_as_bytes())
        except gcs_exceptions.NotFound as exc:
            raise BlobNotFoundError(f"{key} not found: {exc.message}") from exc
        except gcs_exceptions.GoogleAPIError as exc:
            raise BlobStoreError(f"{key} get failed: {exc}") from exc

    def stat(self, key: str) -> BlobMetadata:
        """Read object headers without downloading the content."""
        try:
            blob = self._bucket().get_blob(self._object_name(key))
        except gcs_exceptions.NotFound as exc:
            raise BlobNotFoundError(f"{key} not found: {exc.message}") from exc
        except gcs_exceptions.GoogleAPIError as exc:
            raise BlobStoreError(f"{key} stat failed: {exc}") from exc

        if blob is None:
            raise BlobNotFoundError(f"{key} not found")

        # Buckets do not track access time; updated stands in for it
        metadata = BlobMetadata.from_modified(int(blob.size or 0), blob.updated)
        if blob.time_created is not None:
            metadata.created_at = blob.time_created
        return metadata

    def set(self, key: str, content: bytes) -> None:
        """Upload blob content in a single non-resumable request."""
        name = self._object_name(key)
        content_type, _ = mimetypes.guess_type(name)
        blob = self._bucket().blob(name)
        try:
            blob.upload_from_string(
                content, content_type=content_type or "application/octet-stream"
            )
        except gcs_exceptions.GoogleAPIError as exc:
            raise BlobStoreError(f"Could not write blob to key '{key}': {exc}") from exc

    def remove(self, key: str) -> None:
        """Delete a blob from GCS."""
        blob = self._bucket().blob(self._object_name(key))
        try:
            blob.delete()
        except gcs_exceptions.NotFound as exc:
            raise BlobNotFoundError(f"{key} not found: {exc.message}") from exc
        except gcs_exceptions.GoogleAPIError as exc:
            raise BlobStoreError(f"Could not remove blob at key '{key}': {exc}") from exc
