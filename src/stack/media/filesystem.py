"""Path-based file API that understands registered virtual schemes.

``MediaFilesystem`` mirrors the handful of ``os``/``open`` calls the upload
pipeline needs. Paths addressed with a registered scheme
(``media://...``) go through a ``MediaStreamWrapper``; anything else is
handed to the native filesystem unchanged. Callers therefore never need
to know which blob store, if any, backs a path.
"""

from __future__ import annotations

import errno
import io
import os
import shutil
import stat as stat_module
from typing import IO, Any

from stack.media.registry import SchemeRegistry
from stack.media.stream import MediaStreamWrapper, StreamMode
from stack.storage.base import BlobStoreError


class MediaFile(io.RawIOBase):
    """Unbuffered binary file object over an open ``MediaStreamWrapper``.

    Contents live in memory once opened, so no further buffering is added.
    ``flush()`` uploads pending changes; ``close()`` flushes and releases
    the wrapper.
    """

    def __init__(self, wrapper: MediaStreamWrapper, name: str, mode: str) -> None:
        super().__init__()
        self._wrapper = wrapper
        self.name = name
        self.mode = mode

    def readable(self) -> bool:
        return self._wrapper.readable

    def writable(self) -> bool:
        return self._wrapper.writable

    def seekable(self) -> bool:
        return True

    def read(self, size: int | None = -1) -> bytes:
        self._checkClosed()  # type: ignore[attr-defined]
        return self._wrapper.read(-1 if size is None else size)

    def readall(self) -> bytes:
        return self.read(-1)

    def readinto(self, buffer: Any) -> int:
        view = memoryview(buffer).cast("B")
        data = self.read(len(view))
        view[: len(data)] = data
        return len(data)

    def write(self, data: Any) -> int:
        self._checkClosed()  # type: ignore[attr-defined]
        return self._wrapper.write(bytes(data))

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        self._checkClosed()  # type: ignore[attr-defined]
        if not self._wrapper.seek(offset, whence):
            raise OSError(errno.EINVAL, "Invalid seek position", self.name)
        return self._wrapper.tell()

    def tell(self) -> int:
        self._checkClosed()  # type: ignore[attr-defined]
        return self._wrapper.tell()

    def flush(self) -> None:
        super().flush()
        if not self._wrapper.flush():
            raise BlobStoreError(f"Could not flush {self.name}")

    def close(self) -> None:
        if self.closed:
            return
        try:
            super().close()
        except Exception:
            # flush() already attempted and reported the upload
            self._wrapper.discard()
            raise
        self._wrapper.close()


class MediaFilesystem:
    """File operations dispatched on the scheme of each path."""

    def __init__(self, registry: SchemeRegistry) -> None:
        self.registry = registry

    def wrapper_for(self, path: str) -> MediaStreamWrapper | None:
        """Return a fresh wrapper when ``path`` uses a registered scheme."""
        scheme = self.registry.match(path)
        if scheme is None:
            return None
        return MediaStreamWrapper(self.registry, scheme)

    def is_virtual(self, path: str) -> bool:
        return self.registry.match(path) is not None

    def open(
        self,
        path: str,
        mode: str = "rb",
        encoding: str | None = None,
        errors: str | None = None,
        newline: str | None = None,
    ) -> IO[Any]:
        """Open a file like the builtin ``open``.

        Reading a missing virtual file raises ``BlobNotFoundError``; any
        writable mode creates it on close.
        """
        wrapper = self.wrapper_for(path)
        if wrapper is None:
            return open(path, mode, encoding=encoding, errors=errors, newline=newline)

        stream_mode = StreamMode.parse(mode)
        wrapper.open_stream(path, mode, create=stream_mode.writable)
        raw = MediaFile(wrapper, path, mode)
        if "b" in mode:
            return raw

        buffered: io.BufferedIOBase
        if stream_mode.readable and stream_mode.writable:
            buffered = io.BufferedRandom(raw)
        elif stream_mode.writable:
            buffered = io.BufferedWriter(raw)
        else:
            buffered = io.BufferedReader(raw)
        return io.TextIOWrapper(
            buffered, encoding=encoding or "utf-8", errors=errors, newline=newline
        )

    def read_bytes(self, path: str) -> bytes:
        with self.open(path, "rb") as f:
            return f.read()

    def write_bytes(self, path: str, data: bytes) -> int:
        with self.open(path, "wb") as f:
            return f.write(data)

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        return self.read_bytes(path).decode(encoding)

    def write_text(self, path: str, text: str, encoding: str = "utf-8") -> int:
        return self.write_bytes(path, text.encode(encoding))

    def stat(self, path: str) -> os.stat_result:
        wrapper = self.wrapper_for(path)
        if wrapper is None:
            return os.stat(path)
        return wrapper.stat(path)

    def exists(self, path: str) -> bool:
        wrapper = self.wrapper_for(path)
        if wrapper is None:
            return os.path.exists(path)
        return wrapper.url_stat(path, quiet=True) is not None

    def is_dir(self, path: str) -> bool:
        wrapper = self.wrapper_for(path)
        if wrapper is None:
            return os.path.isdir(path)
        st = wrapper.url_stat(path, quiet=True)
        return st is not None and stat_module.S_ISDIR(st.st_mode)

    def is_file(self, path: str) -> bool:
        wrapper = self.wrapper_for(path)
        if wrapper is None:
            return os.path.isfile(path)
        st = wrapper.url_stat(path, quiet=True)
        return st is not None and stat_module.S_ISREG(st.st_mode)

    def unlink(self, path: str) -> None:
        wrapper = self.wrapper_for(path)
        if wrapper is None:
            os.unlink(path)
            return
        wrapper.remove(path)

    def rename(self, src: str, dst: str) -> None:
        """Rename a file, copying across schemes when needed.

        Within one virtual scheme this is the wrapper's non-atomic
        get + set + remove sequence.
        """
        src_scheme = self.registry.match(src)
        dst_scheme = self.registry.match(dst)

        if src_scheme is None and dst_scheme is None:
            os.replace(src, dst)
            return

        if src_scheme is not None and src_scheme == dst_scheme:
            wrapper = MediaStreamWrapper(self.registry, src_scheme)
            if not wrapper.rename(src, dst):
                raise BlobStoreError(f"Could not rename {src} to {dst}")
            return

        self.copy(src, dst)
        self.unlink(src)

    def copy(self, src: str, dst: str) -> None:
        """Copy file contents from ``src`` to ``dst``, either of which may be virtual."""
        with self.open(src, "rb") as fsrc, self.open(dst, "wb") as fdst:
            shutil.copyfileobj(fsrc, fdst)

    def makedirs(self, path: str, mode: int = 0o777, exist_ok: bool = True) -> None:
        wrapper = self.wrapper_for(path)
        if wrapper is None:
            os.makedirs(path, mode=mode, exist_ok=exist_ok)
            return
        wrapper.mkdir(path, mode, recursive=True)

    def listdir(self, path: str) -> list[str]:
        """List directory entries. Virtual directories are always empty."""
        wrapper = self.wrapper_for(path)
        if wrapper is None:
            return os.listdir(path)

        if not wrapper.opendir(path):
            raise NotADirectoryError(errno.ENOTDIR, "Not a directory", path)
        entries: list[str] = []
        try:
            while (entry := wrapper.readdir()) is not None:
                entries.append(entry)
        finally:
            wrapper.closedir()
        return entries
