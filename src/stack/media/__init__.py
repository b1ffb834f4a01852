"""Media library storage over virtual ``media://`` paths.

- SchemeRegistry binds scheme names to blob stores
- MediaStreamWrapper emulates files and directories on a blob store
- MediaFilesystem dispatches path-based file calls by scheme
- MediaStorage selects the backend and rewires the upload pipeline
"""

from stack.media.filesystem import MediaFile, MediaFilesystem
from stack.media.registry import SchemeRegistry
from stack.media.storage import DirectoryListingError, MediaStorage, ServedMedia
from stack.media.stream import (
    DIRECTORY_WRITABLE_MODE,
    FILE_WRITABLE_MODE,
    MediaStreamWrapper,
    OpenStream,
    StreamMode,
    StreamStateError,
)

__all__ = [
    "DIRECTORY_WRITABLE_MODE",
    "FILE_WRITABLE_MODE",
    "DirectoryListingError",
    "MediaFile",
    "MediaFilesystem",
    "MediaStorage",
    "MediaStreamWrapper",
    "OpenStream",
    "SchemeRegistry",
    "ServedMedia",
    "StreamMode",
    "StreamStateError",
]
