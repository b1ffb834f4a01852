"""CLI commands for inspecting and editing media storage.

Paths are relative to the document root (``wp-content/uploads/2024/01/a.jpg``)
or fully qualified (``media://wp-content/uploads/2024/01/a.jpg``).

Usage:
    stack media stat wp-content/uploads/2024/01/a.jpg
    stack media cat wp-content/uploads/2024/01/a.jpg > a.jpg
    stack media put wp-content/uploads/2024/01/a.jpg ./a.jpg
    stack media mv wp-content/uploads/old.jpg wp-content/uploads/new.jpg
    stack media rm wp-content/uploads/2024/01/a.jpg
"""

from __future__ import annotations

import stat as stat_module
import sys
from datetime import datetime, timezone
from pathlib import Path

import typer

from stack.config import settings
from stack.media.storage import MediaStorage
from stack.storage.base import BlobNotFoundError, BlobStoreError, ConfigurationError

app = typer.Typer(help="Read and modify files in media storage", no_args_is_help=True)


def _storage() -> MediaStorage:
    try:
        return MediaStorage(settings)
    except ConfigurationError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=2) from exc


def _remote(storage: MediaStorage, path: str) -> str:
    return storage.remote_path(storage.wrapper().trim_path(path))


def _fail(message: str) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(code=1)


@app.command("stat")
def stat_cmd(path: str = typer.Argument(..., help="Media path")) -> None:
    """Show size and modification time of a media path."""
    storage = _storage()
    remote = _remote(storage, path)
    try:
        st = storage.filesystem.stat(remote)
    except BlobNotFoundError as exc:
        raise _fail(f"{remote} not found") from exc
    except BlobStoreError as exc:
        raise _fail(str(exc)) from exc

    kind = "directory" if stat_module.S_ISDIR(st.st_mode) else "file"
    modified = datetime.fromtimestamp(st.st_mtime, tz=timezone.utc).isoformat()
    typer.echo(f"path:     {remote}")
    typer.echo(f"type:     {kind}")
    typer.echo(f"mode:     {oct(st.st_mode)}")
    typer.echo(f"size:     {st.st_size}")
    typer.echo(f"modified: {modified}")


@app.command("cat")
def cat_cmd(path: str = typer.Argument(..., help="Media path")) -> None:
    """Write the contents of a media file to stdout."""
    storage = _storage()
    remote = _remote(storage, path)
    try:
        content = storage.filesystem.read_bytes(remote)
    except BlobNotFoundError as exc:
        raise _fail(f"{remote} not found") from exc
    except BlobStoreError as exc:
        raise _fail(str(exc)) from exc

    sys.stdout.buffer.write(content)
    sys.stdout.buffer.flush()


@app.command("put")
def put_cmd(
    path: str = typer.Argument(..., help="Destination media path"),
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Local file to upload"),
) -> None:
    """Upload a local file to a media path."""
    storage = _storage()
    remote = _remote(storage, path)
    try:
        written = storage.filesystem.write_bytes(remote, source.read_bytes())
    except BlobStoreError as exc:
        raise _fail(str(exc)) from exc
    typer.echo(f"Uploaded {written} bytes to {remote}")


@app.command("mv")
def mv_cmd(
    source: str = typer.Argument(..., help="Existing media path"),
    destination: str = typer.Argument(..., help="New media path"),
) -> None:
    """Rename a media file (copy then delete; not atomic)."""
    storage = _storage()
    if not storage.wrapper().rename(_remote(storage, source), _remote(storage, destination)):
        raise _fail(f"Could not rename {source} to {destination}")
    typer.echo(f"Renamed {source} to {destination}")


@app.command("rm")
def rm_cmd(path: str = typer.Argument(..., help="Media path")) -> None:
    """Delete a media file."""
    storage = _storage()
    remote = _remote(storage, path)
    try:
        storage.filesystem.unlink(remote)
    except BlobNotFoundError as exc:
        raise _fail(f"{remote} not found") from exc
    except BlobStoreError as exc:
        raise _fail(str(exc)) from exc
    typer.echo(f"Deleted {remote}")
