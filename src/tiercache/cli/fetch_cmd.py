"""CLI commands for fetching posts and users through the tiered cache.

Usage:
    tiercache post 1
    tiercache post 1 --repeat 3     # first lookup loads, the rest hit the cache
    tiercache posts --limit 5
    tiercache user 1 --format json
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

import typer

from tiercache.errors import TierCacheError
from tiercache.cache.redis import close_redis
from tiercache.factory import Services, build_services

if TYPE_CHECKING:
    from rich.console import Console

    from tiercache.orchestrator import TieredCache

T = TypeVar("T")

BackendOption = typer.Option(
    None,
    "--backend",
    "-b",
    help="Fast store backend: memory, redis (defaults to settings)",
)
FormatOption = typer.Option(
    "text",
    "--format",
    "-f",
    help="Output format: text, json",
)


def _run(backend: str | None, action: Callable[[Services], Awaitable[T]]) -> T:
    """Wire services, run ``action`` and release every client before the loop closes."""

    async def runner() -> T:
        services = await build_services(backend=backend)
        try:
            return await action(services)
        finally:
            await services.aclose()
            await close_redis()

    return asyncio.run(runner())


def _fail(console: Console, error: TierCacheError) -> typer.Exit:
    console.print(f"[red]{error.code}:[/red] {error.text}")
    return typer.Exit(code=1)


def post(
    post_id: int = typer.Argument(..., help="Post ID"),
    repeat: int = typer.Option(
        1,
        "--repeat",
        "-n",
        min=1,
        help="Look the post up N times to show cache hits",
    ),
    backend: str | None = BackendOption,
    output_format: str = FormatOption,
) -> None:
    """Fetch a post through the tiered cache."""
    import orjson
    from rich.console import Console

    console = Console()

    async def action(services: Services) -> None:
        cache = services.posts.posts
        for attempt in range(1, repeat + 1):
            hits_before = cache.stats.hits
            start = time.perf_counter()
            found = await services.posts.get_post(post_id)
            elapsed_ms = (time.perf_counter() - start) * 1000

            if attempt == 1:
                if output_format == "json":
                    console.print_json(orjson.dumps(found.model_dump(by_alias=True)).decode())
                else:
                    console.print(f"[bold]Post {found.id}[/bold] by user {found.user_id}")
                    console.print(f"  [cyan]Title:[/cyan] {found.title}")
                    console.print(f"  [cyan]Body:[/cyan]  {found.body}")
            if repeat > 1:
                tier = "cache" if cache.stats.hits > hits_before else "source"
                console.print(f"  lookup {attempt}: {tier} in {elapsed_ms:.1f} ms")

        if repeat > 1:
            _print_stats(console, cache)

    try:
        _run(backend, action)
    except TierCacheError as e:
        raise _fail(console, e) from e


def posts(
    limit: int | None = typer.Option(
        None,
        "--limit",
        "-l",
        min=1,
        help="Show at most N posts",
    ),
    backend: str | None = BackendOption,
    output_format: str = FormatOption,
) -> None:
    """List all valid posts."""
    import orjson
    from rich.console import Console
    from rich.table import Table

    console = Console()

    try:
        found = _run(backend, lambda services: services.posts.get_all_posts())
    except TierCacheError as e:
        raise _fail(console, e) from e

    shown = found[:limit] if limit else found
    if output_format == "json":
        console.print_json(orjson.dumps([p.model_dump(by_alias=True) for p in shown]).decode())
        return

    table = Table(title=f"Posts ({len(found)} valid)")
    table.add_column("ID", justify="right")
    table.add_column("User", justify="right")
    table.add_column("Title")
    for p in shown:
        table.add_row(str(p.id), str(p.user_id), p.title or "")
    console.print(table)


def user(
    user_id: int = typer.Argument(..., help="User ID"),
    backend: str | None = BackendOption,
    output_format: str = FormatOption,
) -> None:
    """Fetch a user through the tiered cache."""
    import orjson
    from rich.console import Console

    console = Console()

    try:
        found = _run(backend, lambda services: services.users.get_user(user_id))
    except TierCacheError as e:
        raise _fail(console, e) from e

    if output_format == "json":
        console.print_json(orjson.dumps(found.model_dump(mode="json")).decode())
        return

    console.print(f"[bold]{found.display_name}[/bold]")
    console.print(f"  [cyan]Email:[/cyan]   {found.email}")
    console.print(f"  [cyan]Phone:[/cyan]   {found.phone_number}")
    console.print(f"  [cyan]Website:[/cyan] {found.website_url}")
    if found.location and found.location.full_address:
        console.print(f"  [cyan]Address:[/cyan] {found.location.full_address}")
    if found.organization and found.organization.name:
        console.print(f"  [cyan]Company:[/cyan] {found.organization.name}")


def _print_stats(console: Console, cache: TieredCache) -> None:
    stats = cache.stats
    console.print()
    console.print("[bold]Cache:[/bold]")
    console.print(f"  [green]Hits:[/green]   {stats.hits}")
    console.print(f"  [yellow]Misses:[/yellow] {stats.misses}")
    console.print(f"  [blue]Ratio:[/blue]  {stats.hit_ratio:.0%}")
