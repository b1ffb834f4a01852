"""Media file serving.

Serves uploaded files straight from the blob store for deployments where
the web server does not handle the uploads directory itself (``stack
serve`` during development, single-container setups).
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from starlette.responses import Response

from stack.api.deps import get_media_storage
from stack.media.storage import DirectoryListingError, MediaStorage
from stack.storage.base import BlobNotFoundError, BlobStoreError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Media"])


@router.get("/{file_path:path}")
def serve_media_file(
    file_path: str,
    storage: MediaStorage = Depends(get_media_storage),
) -> Response:
    """Return the contents of an uploaded file."""
    try:
        media = storage.resolve_media(file_path)
    except DirectoryListingError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except BlobNotFoundError as exc:
        raise HTTPException(status_code=404, detail=f"Media not found: {file_path}") from exc
    except BlobStoreError as exc:
        logger.warning(
            f"Serving {file_path} failed: {exc}",
            extra={"storage_type": storage.store.storage_type, "blob_key": file_path},
        )
        raise HTTPException(status_code=502, detail="Media storage unavailable") from exc

    return Response(content=media.content, media_type=media.content_type)
