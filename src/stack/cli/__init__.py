"""CLI commands for Stack media storage.

Provides command-line interface using Typer:
- stack media: Inspect and edit files in the configured blob store
- stack serve: Run the media server

Usage:
    stack --help
    stack media stat wp-content/uploads/2024/01/a.jpg
    stack serve --port 8080
"""

import typer

from stack.cli.media_cmd import app as media_app
from stack.cli.serve import app as serve_app

app = typer.Typer(
    name="stack",
    help="Stack: media library storage over pluggable blob stores",
    no_args_is_help=True,
)

app.add_typer(media_app, name="media")
app.add_typer(serve_app, name="serve")


@app.callback()
def callback() -> None:
    """Stack: media library storage over pluggable blob stores."""
    pass


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
