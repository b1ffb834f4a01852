"""HTTP API for serving media files."""

from stack.api.app import create_app

__all__ = ["create_app"]
