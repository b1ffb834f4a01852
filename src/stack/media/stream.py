"""Stream wrapper presenting a blob store as a file system.

Path-based consumers (upload handlers, image processors, deletion
routines) address blob store objects through a virtual scheme such as
``media://wp-content/uploads/2024/01/photo.jpg``. The wrapper strips the
scheme to obtain the blob key and emulates byte-stream and directory
semantics on top of the store's get/stat/set/remove contract:

- Opening a path downloads the whole object into a local buffer; reads,
  writes and seeks operate on that buffer only.
- Dirty buffers are uploaded on ``flush()`` and ``close()``.
- Any path whose final segment has no extension is a directory. Directories
  always exist, are always empty, and ``mkdir`` always succeeds.
- ``rename`` is get + set + remove and is not atomic: a failure after the
  set leaves both keys populated.

Failures are reported the way byte-stream callers expect (``False``,
``None`` or ``b""``) and logged at warning level unless the caller asked
for quiet handling. The raising variants (``open_stream``, ``stat``,
``remove``) are available for callers that want the underlying error.

A wrapper holds at most one open stream. Use separate wrapper instances
for concurrent handles.
"""

from __future__ import annotations

import logging
import os
import stat as stat_module
import time
from dataclasses import dataclass, field
from typing import Any

from stack.media.registry import SchemeRegistry
from stack.storage.base import BlobNotFoundError, BlobStore

logger = logging.getLogger(__name__)

FILE_WRITABLE_MODE = stat_module.S_IFREG | 0o666  # 0o100666
DIRECTORY_WRITABLE_MODE = stat_module.S_IFDIR | 0o777  # 0o40777


class StreamStateError(ValueError):
    """Operation invoked on a wrapper whose stream is not in a usable state."""


@dataclass(frozen=True)
class StreamMode:
    """Parsed ``open()`` mode string."""

    readable: bool
    writable: bool
    truncate: bool = False
    append: bool = False
    exclusive: bool = False

    @classmethod
    def parse(cls, mode: str) -> StreamMode:
        """Parse a mode such as ``"rb"``, ``"w+"`` or ``"ab"``.

        Raises:
            ValueError: If the mode is not a valid file mode
        """
        kinds = [c for c in mode if c in "rwax"]
        unknown = set(mode) - set("rwaxbt+")
        if len(kinds) != 1 or unknown or len(set(mode)) != len(mode):
            raise ValueError(f"invalid mode: '{mode}'")

        kind = kinds[0]
        plus = "+" in mode
        return cls(
            readable=kind == "r" or plus,
            writable=kind != "r" or plus,
            truncate=kind in "wx",
            append=kind == "a",
            exclusive=kind == "x",
        )


@dataclass
class OpenStream:
    """One open handle: the blob key and its fully materialized contents."""

    key: str
    mode: StreamMode
    buffer: bytearray = field(default_factory=bytearray)
    position: int = 0
    dirty: bool = False


def _stat_result(
    mode: int, size: int = 0, atime: int = 0, mtime: int = 0, ctime: int = 0
) -> os.stat_result:
    # (mode, ino, dev, nlink, uid, gid, size, atime, mtime, ctime)
    return os.stat_result((mode, 0, 0, 0, 0, 0, size, atime, mtime, ctime))


DIRECTORY_STAT = _stat_result(DIRECTORY_WRITABLE_MODE)


def path_extension(path: str) -> str:
    """Return the extension of the final path segment, without the dot."""
    name = path.rstrip("/").rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1]


class MediaStreamWrapper:
    """Byte-stream and directory emulation over a registered BlobStore."""

    DEFAULT_PROTOCOL = "media"

    def __init__(self, registry: SchemeRegistry, protocol: str | None = None) -> None:
        """Bind the wrapper to the store registered for ``protocol``.

        Raises:
            StreamStateError: If the protocol is not registered
        """
        self.protocol = protocol or self.DEFAULT_PROTOCOL
        try:
            self.store: BlobStore = registry.get(self.protocol)
        except KeyError as exc:
            raise StreamStateError(f"'{self.protocol}://' protocol is not registered") from exc

        self._stream: OpenStream | None = None
        self._dir_path: str | None = None

    # -------------------------------------------------------------------------
    # Paths
    # -------------------------------------------------------------------------

    def trim_path(self, path: str) -> str:
        """Convert a protocol path into a blob key.

        Strips every leading ``<protocol>:`` together with the slashes,
        backslashes and colons that follow it, so repeated application is
        a no-op and accidentally doubled prefixes collapse.
        """
        prefix = f"{self.protocol}:"
        trimmed = path.lstrip(":/\\")
        while trimmed.startswith(prefix):
            trimmed = trimmed[len(prefix) :].lstrip(":/\\")
        return trimmed

    def is_dir(self, path: str) -> bool:
        """Check if the path names a directory.

        All paths without an extension are considered directories. Upload
        directory resolution probes its target for existence on every
        request, and blob stores have no directory listing to consult.
        """
        return not path_extension(self.trim_path(path))

    # -------------------------------------------------------------------------
    # Stream lifecycle
    # -------------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        """True when no stream is open on this wrapper."""
        return self._stream is None

    @property
    def key(self) -> str | None:
        """Blob key of the open stream, if any."""
        return self._stream.key if self._stream else None

    @property
    def readable(self) -> bool:
        return self._stream is not None and self._stream.mode.readable

    @property
    def writable(self) -> bool:
        return self._stream is not None and self._stream.mode.writable

    def _require_stream(self) -> OpenStream:
        if self._stream is None:
            raise StreamStateError("I/O operation on closed media stream")
        return self._stream

    def open_stream(self, path: str, mode: str = "rb", create: bool = True) -> OpenStream:
        """Open ``path`` and materialize its contents.

        Args:
            path: Protocol path or bare key
            mode: File mode (r, w, a, x, with optional + and b/t)
            create: Start from an empty buffer when the key does not exist.
                When False a missing key raises BlobNotFoundError instead.

        Raises:
            StreamStateError: If a stream is already open on this wrapper
            ValueError: If the mode is invalid
            FileExistsError: For exclusive mode on an existing key
            BlobNotFoundError: For a missing key when ``create`` is False
            BlobStoreError: On any other backend failure
        """
        if self._stream is not None:
            raise StreamStateError(f"A stream is already open for {self._stream.key}")

        stream_mode = StreamMode.parse(mode)
        key = self.trim_path(path)

        if stream_mode.exclusive:
            if self.store.exists(key):
                raise FileExistsError(f"{key} already exists")
            content = b""
        elif stream_mode.truncate:
            content = b""
        else:
            try:
                content = self.store.get(key)
            except BlobNotFoundError:
                if not create:
                    raise
                # Doesn't exist in the blob store yet, so create a new file
                content = b""

        stream = OpenStream(key=key, mode=stream_mode, buffer=bytearray(content))
        # Truncating modes must leave an (empty) object behind even if nothing is written
        stream.dirty = stream_mode.truncate
        if stream_mode.append:
            stream.position = len(stream.buffer)

        self._stream = stream
        return stream

    def open(self, path: str, mode: str = "rb", report_errors: bool = True) -> bool:
        """Open ``path``, returning False instead of raising on backend failure."""
        try:
            self.open_stream(path, mode)
        except OSError as exc:
            key = self.trim_path(path)
            self._report(
                key,
                f"open failed for {key} with error: {exc}",
                quiet=not report_errors,
                level=logging.ERROR,
            )
            return False
        return True

    def read(self, count: int = -1) -> bytes:
        """Read up to ``count`` bytes (all remaining when negative)."""
        stream = self._require_stream()
        if not stream.mode.readable:
            raise StreamStateError(f"Media stream for {stream.key} is not open for reading")

        start = stream.position
        end = len(stream.buffer) if count is None or count < 0 else start + count
        data = bytes(stream.buffer[start:end])
        stream.position += len(data)
        return data

    def write(self, data: bytes) -> int:
        """Write ``data`` at the current position and mark the stream dirty."""
        stream = self._require_stream()
        if not stream.mode.writable:
            raise StreamStateError(f"Media stream for {stream.key} is not open for writing")

        if stream.mode.append:
            stream.position = len(stream.buffer)
        elif stream.position > len(stream.buffer):
            stream.buffer.extend(b"\0" * (stream.position - len(stream.buffer)))

        length = len(data)
        stream.buffer[stream.position : stream.position + length] = data
        stream.position += length
        stream.dirty = True
        return length

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> bool:
        """Move the stream position. Positions before the start are rejected."""
        stream = self._require_stream()

        if whence == os.SEEK_SET:
            position = offset
        elif whence == os.SEEK_CUR:
            position = stream.position + offset
        elif whence == os.SEEK_END:
            position = len(stream.buffer) + offset
        else:
            self._report(stream.key, f"Invalid whence {whence} seeking on file: {stream.key}")
            return False

        if position < 0:
            self._report(stream.key, f"Error seeking on file: {stream.key}")
            return False

        stream.position = position
        return True

    def tell(self) -> int:
        return self._require_stream().position

    def eof(self) -> bool:
        stream = self._require_stream()
        return stream.position >= len(stream.buffer)

    def flush(self) -> bool:
        """Upload the buffer if it changed since the last sync.

        Returns:
            True on success (or nothing to do), False if no stream is open
            or the backend rejected the upload
        """
        stream = self._stream
        if stream is None:
            return False
        if not stream.dirty:
            return True

        try:
            self.store.set(stream.key, bytes(stream.buffer))
        except OSError as exc:
            self._report(stream.key, f"flush failed for {stream.key} with error: {exc}")
            return False

        stream.dirty = False
        return True

    def close(self) -> bool:
        """Flush pending changes and release the buffer.

        The wrapper can be reopened afterwards. Returns the flush result.
        """
        if self._stream is None:
            return True

        result = self.flush()
        self._stream = None
        return result

    def discard(self) -> None:
        """Release the open stream, dropping any changes not yet uploaded."""
        self._stream = None

    def fstat(self) -> os.stat_result:
        """Stat the open stream from its in-memory buffer."""
        stream = self._require_stream()
        now = int(time.time())
        return _stat_result(FILE_WRITABLE_MODE, len(stream.buffer), now, now, now)

    def __enter__(self) -> MediaStreamWrapper:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Path operations
    # -------------------------------------------------------------------------

    def stat(self, path: str) -> os.stat_result:
        """Stat a path, consulting the backend only for files.

        Raises:
            BlobNotFoundError: If a file path has no backing object
            BlobStoreError: On any other backend failure
        """
        key = self.trim_path(path)
        if self.is_dir(key):
            return DIRECTORY_STAT

        info = self.store.stat(key)
        return _stat_result(
            FILE_WRITABLE_MODE,
            size=info.size,
            atime=int(info.accessed_at.timestamp()),
            mtime=int(info.modified_at.timestamp()),
            ctime=int(info.created_at.timestamp()),
        )

    def url_stat(self, path: str, quiet: bool = False) -> os.stat_result | None:
        """Stat a path, returning None when it does not exist or cannot be read."""
        try:
            return self.stat(path)
        except BlobNotFoundError:
            return None
        except OSError as exc:
            key = self.trim_path(path)
            self._report(
                key,
                f"url_stat failed for {key} with error: {exc}",
                quiet=quiet,
            )
            return None

    def remove(self, path: str) -> None:
        """Delete the object behind ``path``, raising on failure."""
        self.store.remove(self.trim_path(path))

    def unlink(self, path: str, quiet: bool = False) -> bool:
        """Delete the object behind ``path``.

        Returns:
            True if deleted, False if missing or the backend failed
        """
        try:
            self.remove(path)
        except OSError as exc:
            key = self.trim_path(path)
            self._report(
                key,
                f"unlink failed for {key} with error: {exc}",
                quiet=quiet,
            )
            return False
        return True

    def rename(self, path_from: str, path_to: str) -> bool:
        """Rename by copying the object and removing the source.

        Not atomic: when the final remove fails both keys stay populated.
        """
        key_from = self.trim_path(path_from)
        key_to = self.trim_path(path_to)
        if key_from == key_to:
            return True

        try:
            # Downloads the whole object; blob stores have no server-side move here
            content = self.store.get(key_from)
            self.store.set(key_to, content)
            self.store.remove(key_from)
        except OSError as exc:
            self._report(key_from, f"rename from {key_from} to {key_to} failed with error: {exc}")
            return False
        return True

    def mkdir(self, path: str, mode: int = 0o777, recursive: bool = False) -> bool:
        """Directories are implied by key names, so creating one always succeeds."""
        return True

    def touch(self, path: str, mtime: float | None = None, atime: float | None = None) -> bool:
        """Setting timestamps or ownership is not supported by blob stores."""
        logger.debug(f"touch is not supported for {self.trim_path(path)}")
        return False

    # -------------------------------------------------------------------------
    # Directory enumeration
    # -------------------------------------------------------------------------

    def opendir(self, path: str) -> bool:
        """Open a directory handle; succeeds whenever the path is a directory."""
        if not self.is_dir(path):
            return False
        self._dir_path = self.trim_path(path)
        return True

    def readdir(self) -> str | None:
        """Directories never list entries."""
        return None

    def rewinddir(self) -> bool:
        return self._dir_path is not None

    def closedir(self) -> bool:
        if self._dir_path is None:
            return False
        self._dir_path = None
        return True

    # -------------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------------

    def _report(
        self, key: str, message: str, quiet: bool = False, level: int = logging.WARNING
    ) -> None:
        logger.log(
            logging.DEBUG if quiet else level,
            message,
            extra={"storage_type": self.store.storage_type, "blob_key": key},
        )
