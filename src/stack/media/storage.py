"""Media library storage using the ``media://`` stream wrapper.

Selects the blob store from the configured storage URI, registers it
under the ``media`` scheme and rewires the upload pipeline so uploaded
files are written, deleted and served through that scheme.
"""

from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from typing import Any

from stack.config import Settings, settings as default_settings
from stack.media.filesystem import MediaFilesystem
from stack.media.registry import SchemeRegistry
from stack.media.stream import MediaStreamWrapper
from stack.storage.base import BlobStore
from stack.storage.factory import create_blob_store

logger = logging.getLogger(__name__)


class DirectoryListingError(PermissionError):
    """A media request addressed a directory."""


@dataclass
class ServedMedia:
    """Media file resolved for an HTTP response."""

    path: str
    content: bytes
    content_type: str


class MediaStorage:
    """Controller owning the active blob store and the ``media://`` binding."""

    PROTOCOL = MediaStreamWrapper.DEFAULT_PROTOCOL

    # Image editors that cannot read or write through stream wrappers
    INCOMPATIBLE_IMAGE_EDITORS = frozenset({"WP_Image_Editor_Imagick"})

    def __init__(
        self,
        config: Settings | None = None,
        registry: SchemeRegistry | None = None,
        store: BlobStore | None = None,
    ) -> None:
        """Configure the storage backend and register the ``media://`` scheme.

        Args:
            config: Settings to read the storage URI and uploads path from
            registry: Scheme registry to bind into; a new one when omitted
            store: Explicit backend, bypassing URI based selection

        Raises:
            ConfigurationError: If the storage URI scheme is not supported
        """
        self.settings = config or default_settings
        self.rel_uploads_dir = self.settings.media_path.strip("/")
        self.registry = registry if registry is not None else SchemeRegistry()
        self.store = store or create_blob_store(self.settings.media_bucket, self.settings)

        self.registry.unregister(self.PROTOCOL)
        self.registry.register(self.PROTOCOL, self.store)
        self.filesystem = MediaFilesystem(self.registry)

        logger.info(
            f"Media storage ready: {self.PROTOCOL}:// -> {type(self.store).__name__}",
            extra={"storage_type": self.store.storage_type},
        )

    def close(self) -> None:
        """Remove the ``media://`` binding if it still points at this store."""
        if self.PROTOCOL in self.registry and self.registry.get(self.PROTOCOL) is self.store:
            self.registry.unregister(self.PROTOCOL)

    def __enter__(self) -> MediaStorage:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def wrapper(self) -> MediaStreamWrapper:
        """Return a new stream wrapper bound to the media scheme."""
        return MediaStreamWrapper(self.registry, self.PROTOCOL)

    def remote_path(self, path: str) -> str:
        """Return the fully qualified path, including the media:// prefix."""
        return f"{self.PROTOCOL}://{path}"

    @property
    def uploads_dir(self) -> str:
        """The remote uploads directory, e.g. ``media://wp-content/uploads``."""
        return self.remote_path(self.rel_uploads_dir)

    def filter_upload_dir(self, uploads: dict[str, Any]) -> dict[str, Any]:
        """Root an upload directory description at the media scheme.

        Args:
            uploads: Mapping with at least ``subdir`` (e.g. ``/2024/01``)

        Returns:
            A copy with ``basedir`` and ``path`` pointing into media://
        """
        basedir = self.uploads_dir
        result = dict(uploads)
        result["basedir"] = basedir
        result["path"] = f"{basedir}{uploads.get('subdir', '')}".rstrip("/")
        return result

    def filter_delete_file(self, path: str) -> str:
        """Delete media:// files directly.

        Thumbnail pipelines join the uploads dir onto paths that already
        carry it, producing ``media://wp-content/uploads/media://wp-content/
        uploads/...``. Repeated prefixes are collapsed to one before the
        file is unlinked through the wrapper.

        Returns:
            "" when the file was handled here, otherwise the path unchanged
        """
        # Only whole path segments count; uploads_dir + "foo" is a sibling directory
        prefix = f"{self.uploads_dir}/"
        if path.startswith(prefix):
            while path.startswith(prefix):
                path = path[len(prefix) :].lstrip("/")
            path = f"{prefix}{path}"

        if path.startswith(f"{self.PROTOCOL}://"):
            self.wrapper().unlink(path, quiet=True)
            return ""

        return path

    def filter_image_editors(self, editors: list[str]) -> list[str]:
        """Drop image editors that cannot work on media:// paths."""
        return [editor for editor in editors if editor not in self.INCOMPATIBLE_IMAGE_EDITORS]

    def resolve_media(self, request_path: str) -> ServedMedia:
        """Read a media file for serving.

        Args:
            request_path: Path relative to the uploads directory

        Raises:
            DirectoryListingError: If the path has no extension
            BlobNotFoundError: If the file does not exist
            BlobStoreError: On any other backend failure
        """
        relative = request_path.lstrip("/")
        wrapper = self.wrapper()
        if wrapper.is_dir(relative):
            raise DirectoryListingError("Directory listing disabled.")

        remote = self.remote_path(f"{self.rel_uploads_dir}/{relative}")
        content = self.filesystem.read_bytes(remote)
        content_type, _ = mimetypes.guess_type(relative)
        return ServedMedia(
            path=remote,
            content=content,
            content_type=content_type or "application/octet-stream",
        )
