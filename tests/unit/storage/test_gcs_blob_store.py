"""Unit tests for GCS blob storage backend."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from google.api_core import exceptions as gcs_exceptions

from stack.storage.base import BlobNotFoundError, BlobStoreError
from stack.storage.gcs import GcsBlobStore

UPDATED = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
CREATED = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


class FakeGcsBlob:
    def __init__(self, bucket: FakeGcsBucket, name: str) -> None:
        self._bucket = bucket
        self.name = name
        self.size: int | None = None
        self.updated: datetime | None = None
        self.time_created: datetime | None = None

    def upload_from_string(self, data: bytes, content_type: str | None = None) -> None:
        if self._bucket.fail_uploads:
            raise gcs_exceptions.ServiceUnavailable("backend unavailable")
        self._bucket.store[self.name] = data
        self._bucket.content_types[self.name] = content_type

    def download_as_bytes(self) -> bytes:
        if self.name not in self._bucket.store:
            raise gcs_exceptions.NotFound(f"No such object: {self.name}")
        return self._bucket.store[self.name]

    def delete(self) -> None:
        if self.name not in self._bucket.store:
            raise gcs_exceptions.NotFound(f"No such object: {self.name}")
        del self._bucket.store[self.name]


class FakeGcsBucket:
    def __init__(self) -> None:
        self.store: dict[str, bytes] = {}
        self.content_types: dict[str, str | None] = {}
        self.fail_uploads = False

    def blob(self, name: str) -> FakeGcsBlob:
        return FakeGcsBlob(self, name)

    def get_blob(self, name: str) -> FakeGcsBlob | None:
        if name not in self.store:
            return None
        blob = FakeGcsBlob(self, name)
        blob.size = len(self.store[name])
        blob.updated = UPDATED
        blob.time_created = CREATED
        return blob


class FakeGcsClient:
    def __init__(self) -> None:
        self.buckets: dict[str, FakeGcsBucket] = {}

    def bucket(self, name: str) -> FakeGcsBucket:
        return self.buckets.setdefault(name, FakeGcsBucket())


@pytest.fixture
def client() -> FakeGcsClient:
    return FakeGcsClient()


@pytest.fixture
def store(client: FakeGcsClient, monkeypatch: pytest.MonkeyPatch) -> GcsBlobStore:
    storage = GcsBlobStore(bucket="media-bucket", prefix="/sites/one/")
    monkeypatch.setattr(storage, "_get_client", lambda: client)
    return storage


class TestGcsBlobStore:
    """Tests for GcsBlobStore against a fake client."""

    def test_roundtrip_under_prefix(self, store: GcsBlobStore, client: FakeGcsClient) -> None:
        """Keys are stored below the configured prefix."""
        store.set("a/b/c.txt", b"hello")

        assert store.get("a/b/c.txt") == b"hello"
        assert list(client.bucket("media-bucket").store) == ["sites/one/a/b/c.txt"]

    def test_content_type_is_guessed(self, store: GcsBlobStore, client: FakeGcsClient) -> None:
        store.set("photo.jpg", b"\xff\xd8")

        assert client.bucket("media-bucket").content_types["sites/one/photo.jpg"] == "image/jpeg"

    def test_stat_uses_object_headers(self, store: GcsBlobStore) -> None:
        """Size comes from headers; updated maps to modified and accessed times."""
        store.set("a/b/c.txt", b"hello")

        info = store.stat("a/b/c.txt")

        assert info.size == 5
        assert info.modified_at == UPDATED
        assert info.accessed_at == UPDATED
        assert info.created_at == CREATED

    def test_get_missing_raises_not_found(self, store: GcsBlobStore) -> None:
        with pytest.raises(BlobNotFoundError):
            store.get("missing.txt")

    def test_stat_missing_raises_not_found(self, store: GcsBlobStore) -> None:
        with pytest.raises(BlobNotFoundError):
            store.stat("missing.txt")

    def test_remove_twice_normalizes_remote_not_found(self, store: GcsBlobStore) -> None:
        """The remote 404 on a repeated delete surfaces as BlobNotFoundError."""
        store.set("a/b/c.txt", b"hello")

        store.remove("a/b/c.txt")

        with pytest.raises(BlobNotFoundError):
            store.remove("a/b/c.txt")
        with pytest.raises(BlobNotFoundError):
            store.get("a/b/c.txt")

    def test_upload_failure_raises_store_error(
        self, store: GcsBlobStore, client: FakeGcsClient
    ) -> None:
        """API errors other than 404 are wrapped, not reported as NotFound."""
        client.bucket("media-bucket").fail_uploads = True

        with pytest.raises(BlobStoreError) as exc_info:
            store.set("a.txt", b"x")

        assert not isinstance(exc_info.value, BlobNotFoundError)

    def test_uri(self, store: GcsBlobStore) -> None:
        assert store.uri("/a/b.txt") == "gs://media-bucket/sites/one/a/b.txt"

    def test_no_prefix(self, client: FakeGcsClient, monkeypatch: pytest.MonkeyPatch) -> None:
        storage = GcsBlobStore(bucket="plain")
        monkeypatch.setattr(storage, "_get_client", lambda: client)

        storage.set("/x.txt", b"1")

        assert list(client.bucket("plain").store) == ["x.txt"]
