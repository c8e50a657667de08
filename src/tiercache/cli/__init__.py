"""CLI commands for tiercache.

Provides command-line interface using Typer:
- tiercache post: Fetch a post through the tiered cache
- tiercache posts: List all valid posts
- tiercache user: Fetch a user through the tiered cache
- tiercache serve: Run the API server

Usage:
    tiercache --help
    tiercache post 1 --repeat 3
    tiercache posts
    tiercache user 1
    tiercache serve --port 8080
"""

import typer

from tiercache.cli.fetch_cmd import post, posts, user
from tiercache.cli.serve import app as serve_app

# Main CLI application
app = typer.Typer(
    name="tiercache",
    help="tiercache: cache-aside lookups over a fast store and a source of record",
    no_args_is_help=True,
)

app.command("post")(post)
app.command("posts")(posts)
app.command("user")(user)
app.add_typer(serve_app, name="serve")


@app.callback()
def callback() -> None:
    """tiercache: cache-aside lookups over a fast store and a source of record."""
    pass


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
