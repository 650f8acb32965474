"""
Resource API CLI.

Command-line interface for common operations against the resource store and
a running API.
"""

import asyncio
import sys
import uuid
from typing import Optional

import httpx
import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="resource-api",
    help="Audit-aware resource API CLI",
    add_completion=False,
)
console = Console()


def _http_client(timeout: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout)


# =============================================================================
# Server Commands
# =============================================================================

@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address"),
    port: Optional[int] = typer.Option(None, help="Port, defaults to the configured one"),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes"),
):
    """Run the REST API with uvicorn."""
    import uvicorn

    from shared.config.settings import settings

    uvicorn.run(
        "rest_api.main:app",
        host=host,
        port=port or settings.rest_api_port,
        reload=reload,
        log_config=None,
    )


# =============================================================================
# Database Commands
# =============================================================================

@app.command()
def db_init(
    database_url: Optional[str] = typer.Option(None, help="Override the configured database URL"),
):
    """Create every registered table that does not exist yet."""
    from rest_api.models import Base
    from shared.config.settings import settings
    from shared.infrastructure.db import create_engine_from_url

    url = database_url or settings.database_url

    async def _init():
        engine = create_engine_from_url(url)
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        finally:
            await engine.dispose()

    try:
        asyncio.run(_init())
    except Exception as e:
        console.print(f"[red]✗ Table creation failed: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓ {len(Base.metadata.tables)} tables ready[/green]")


# =============================================================================
# Resource Commands
# =============================================================================

@app.command()
def resources():
    """Show the registered resources and what each one supports."""
    from rest_api.models import RESOURCE_MODELS
    from rest_api.services.crud import inspect_entity

    table = Table(title="Registered Resources")
    table.add_column("Route", style="cyan")
    table.add_column("Entity")
    table.add_column("Id")
    table.add_column("Audit")
    table.add_column("Soft delete")
    table.add_column("Search fields", style="green")

    for name, model in RESOURCE_MODELS.items():
        caps = inspect_entity(model)
        table.add_row(
            name,
            caps.entity_name,
            caps.id_field.kind,
            "yes" if caps.has_audit else "no",
            "yes" if caps.has_soft_delete else "no",
            ", ".join(caps.search_fields) or "-",
        )

    console.print(table)


@app.command()
def browse(
    resource: str = typer.Argument(..., help="Route name, e.g. companies"),
    base_url: str = typer.Option("http://localhost:8000", help="API root"),
    page: int = typer.Option(0, help="Zero-based page"),
    page_size: int = typer.Option(20, help="Items per page"),
    sort_by: Optional[str] = typer.Option(None, help="Field to sort by"),
    sort_desc: bool = typer.Option(False, "--desc", help="Sort descending"),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Free-text search"),
):
    """Print one page of a resource as a table."""
    from rest_api.client import ResourceClient

    async def _load():
        async with _http_client(10.0) as http:
            client = ResourceClient(http, base_url, resource)
            return await client.load_page(
                page=page,
                page_size=page_size,
                sort_by=sort_by,
                sort_desc=sort_desc,
                search=search,
            )

    grid = asyncio.run(_load())
    if not grid.items:
        console.print(f"[yellow]No items ({grid.total_items} total)[/yellow]")
        return

    columns = [key for key in grid.items[0] if not isinstance(grid.items[0][key], (dict, list))]
    table = Table(title=f"{resource}: page {page} of {grid.total_items} items")
    for column in columns:
        table.add_column(column)
    for item in grid.items:
        table.add_row(*("" if item.get(column) is None else str(item.get(column)) for column in columns))

    console.print(table)


@app.command()
def token(
    actor_id: str = typer.Argument(..., help="UUID of the acting user"),
    ttl: int = typer.Option(3600, help="Lifetime in seconds"),
):
    """Mint a development bearer token for an actor."""
    from shared.security.auth import sign_jwt

    try:
        subject = uuid.UUID(actor_id)
    except ValueError:
        console.print(f"[red]✗ Not a UUID: {actor_id}[/red]")
        raise typer.Exit(1)

    typer.echo(sign_jwt({"sub": str(subject)}, ttl_seconds=ttl))


# =============================================================================
# Health Commands
# =============================================================================

@app.command()
def health(
    base_url: str = typer.Option("http://localhost:8000", help="API root"),
):
    """Check API and database health."""

    async def _health():
        table = Table(title="Service Health")
        table.add_column("Check", style="cyan")
        table.add_column("Status", style="green")

        healthy = True
        async with _http_client(5.0) as client:
            for name, path in (("REST API", "/api/health"), ("Database", "/api/health/detailed")):
                try:
                    response = await client.get(f"{base_url.rstrip('/')}{path}")
                    if response.status_code == 200:
                        table.add_row(name, "✓ Healthy")
                    else:
                        healthy = False
                        table.add_row(name, f"✗ Status {response.status_code}")
                except httpx.HTTPError as e:
                    healthy = False
                    table.add_row(name, f"✗ {type(e).__name__}")

        console.print(table)
        return healthy

    if not asyncio.run(_health()):
        raise typer.Exit(1)


@app.command()
def version():
    """Show version information."""
    table = Table(title="Resource API Version")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")

    table.add_row("API", "1.0.0")
    table.add_row("Python", sys.version.split()[0])

    console.print(table)


if __name__ == "__main__":
    app()
