"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

from typing import cast

from fastapi import Request

from stack.media.storage import MediaStorage


def get_media_storage(request: Request) -> MediaStorage:
    """Return the media storage controller attached to the application."""
    return cast(MediaStorage, request.app.state.media_storage)
