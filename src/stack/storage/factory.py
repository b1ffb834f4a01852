"""Blob storage factory.

Selects a backend from the scheme of the configured storage URI:

    objcache://[namespace]      -> CacheBlobStore (Redis)
    gs://bucket/prefix          -> GcsBlobStore
    gcs://bucket/prefix         -> GcsBlobStore
    file:///path, /path, ""     -> LocalBlobStore
"""

from __future__ import annotations

from urllib.parse import urlsplit

from stack.config import Settings, settings as default_settings
from stack.storage.base import BlobStore, ConfigurationError
from stack.storage.cache import DEFAULT_NAMESPACE, CacheBlobStore
from stack.storage.gcs import GcsBlobStore
from stack.storage.local import LocalBlobStore

SUPPORTED_SCHEMES = ("objcache", "gs", "gcs", "file", "")


def _local_root(path: str, config: Settings) -> str:
    """Resolve the document root for a local store.

    Keys carry the uploads directory (``wp-content/uploads/...``), so a
    root that already ends with it is trimmed to avoid doubling it.
    """
    if not path:
        path = config.media_root

    rel_uploads_dir = config.media_path.strip("/")
    suffix = f"/{rel_uploads_dir}"
    trimmed = path.rstrip("/")
    if rel_uploads_dir and trimmed.endswith(suffix):
        trimmed = trimmed[: -len(suffix)]
    return trimmed or "/"


def create_blob_store(uri: str, config: Settings | None = None) -> BlobStore:
    """Build the BlobStore selected by ``uri``.

    Args:
        uri: Storage location URI
        config: Settings used for backend credentials and defaults

    Returns:
        A new BlobStore instance

    Raises:
        ConfigurationError: If the scheme is not supported or the URI is incomplete
    """
    config = config or default_settings
    parts = urlsplit(uri.strip())
    scheme = parts.scheme.lower()

    if scheme == "objcache":
        return CacheBlobStore.from_url(
            config.redis_url,
            namespace=parts.netloc or DEFAULT_NAMESPACE,
            ttl=config.media_cache_ttl,
        )

    if scheme in {"gs", "gcs"}:
        if not parts.netloc:
            raise ConfigurationError(f"Missing bucket name in media storage URI '{uri}'")
        return GcsBlobStore(
            bucket=parts.netloc,
            prefix=parts.path,
            project=config.gcs_project,
            credentials_path=config.gcs_credentials_path,
        )

    if scheme in {"file", ""}:
        path = parts.path
        if parts.netloc and parts.netloc != "localhost":
            path = f"{parts.netloc}{path}"
        return LocalBlobStore(base_path=_local_root(path, config))

    raise ConfigurationError(
        f"Invalid protocol '{parts.scheme}' for media storage. "
        f"Supported values: objcache, gs, gcs, file."
    )
