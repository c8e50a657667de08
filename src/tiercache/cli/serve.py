"""CLI command for running the API server.

Usage:
    tiercache serve
    tiercache serve --port 8080 --backend redis
    tiercache serve --reload --log-level debug
"""

from __future__ import annotations

import os

import typer

from tiercache.config import settings

app = typer.Typer(help="Run the tiercache API server")


@app.callback(invoke_without_command=True)
def serve(
    host: str = typer.Option(settings.host, "--host", "-h", help="Interface to bind"),
    port: int = typer.Option(settings.port, "--port", "-p", help="TCP port"),
    backend: str = typer.Option(
        settings.cache_backend, "--backend", "-b", help="Fast store: memory or redis"
    ),
    reload: bool = typer.Option(False, "--reload", "-r", help="Restart on code changes"),
    log_level: str = typer.Option(
        settings.log_level, "--log-level", "-l", help="debug, info, warning or error"
    ),
    access_log: bool = typer.Option(
        False, "--access-log/--no-access-log", help="Let uvicorn log every request too"
    ),
) -> None:
    """Serve posts and users over HTTP.

    Always one worker: a memory store is private to its process, so extra
    workers would each hold their own cache.
    """
    import uvicorn
    from rich.console import Console

    # The reloader starts a fresh interpreter, which only sees the environment
    os.environ["CACHE_BACKEND"] = backend
    settings.cache_backend = backend

    console = Console()
    console.print(f"[bold]tiercache[/bold] on http://{host}:{port} (docs at /docs)")
    console.print(f"  fast store  [cyan]{backend}[/cyan], ttl {settings.cache_default_ttl:g}s")
    console.print(f"  source      [cyan]{settings.source_base_url}[/cyan]")
    if reload:
        console.print("  [yellow]reload enabled[/yellow]")

    uvicorn.run(
        app="tiercache.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=1,
        log_level=log_level.lower(),
        access_log=access_log,
    )
