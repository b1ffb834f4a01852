"""CLI command for running the media server.

Usage:
    stack serve
    stack serve --port 8080 --host 0.0.0.0
    stack serve --reload --log-level debug
"""

from __future__ import annotations

import typer

from stack.config import settings

app = typer.Typer(help="Serve the uploads directory over HTTP")


@app.callback(invoke_without_command=True)
def serve(
    host: str | None = typer.Option(
        None,
        "--host",
        "-h",
        help="Host to bind to [default: STACK_HOST]",
    ),
    port: int | None = typer.Option(
        None,
        "--port",
        "-p",
        help="Port to listen on [default: STACK_PORT]",
    ),
    reload: bool = typer.Option(
        False,
        "--reload",
        "-r",
        help="Enable auto-reload for development",
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level: debug, info, warning, error [default: STACK_LOG_LEVEL]",
    ),
) -> None:
    """Run the media server with uvicorn."""
    import uvicorn

    host = host or settings.host
    port = port or settings.port
    log_level = (log_level or settings.log_level).lower()

    typer.echo("Starting Stack media server...")
    typer.echo(f"  Host: {host}")
    typer.echo(f"  Port: {port}")
    typer.echo(f"  Log level: {log_level}")
    if reload:
        typer.echo("  Reload: enabled")
    typer.echo()

    uvicorn.run(
        app="stack.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )
