from __future__ import annotations

import asyncio
import sys
from typing import Any, Awaitable, Callable, Optional, TypeVar

import psycopg
import typer
import uvicorn
from rich.console import Console

from sakila_admin.api.server import create_app
from sakila_admin.config import get_settings
from sakila_admin.data.errors import DATABASE_EXCEPTIONS, QueryError, TableNotFoundError, to_db_error
from sakila_admin.infrastructure.db_factory import wait_for_database
from sakila_admin.reports.dashboard import sakila_dashboard, streaming_statistics
from sakila_admin.services import AppServices, open_services
from sakila_admin.shell import AdminShell, startup_check
from sakila_admin.utils.logging import configure_logging
from sakila_admin.views import render
from sakila_admin.views.list_view import ListView, ViewState
from sakila_admin.views.sales import sales_by_category
from sakila_admin.views.specs import VIEWS

app = typer.Typer(help="Sakila admin console CLI.")
console = Console()

T = TypeVar("T")


def _setup() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


def _run(action: Callable[[AppServices], Awaitable[T]]) -> T:
    """Open services for one command, run `action` and report database failures."""
    _setup()

    async def runner() -> T:
        async with open_services() as services:
            return await action(services)

    try:
        return asyncio.run(runner())
    except QueryError as exc:
        console.print(f"[red]{exc.error.message}[/red]")
        if exc.error.hint:
            console.print(f"[dim]{exc.error.hint}[/dim]")
        raise typer.Exit(code=1) from exc
    except DATABASE_EXCEPTIONS as exc:
        console.print(f"[red]Database unavailable: {to_db_error(exc).message}[/red]")
        raise typer.Exit(code=1) from exc


@app.command()
def info() -> None:
    """
    Show effective configuration values (without the password).
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} "
        f"schema={settings.db_schema} | page_size={settings.default_page_size} "
        f"pool={settings.db_pool_min}-{settings.db_pool_max} timeout={settings.query_timeout_seconds}s | "
        f"api={settings.api_host}:{settings.api_port} key={'set' if settings.admin_api_key else 'unset'}"
    )


@app.command()
def ping() -> None:
    """
    Check database connectivity (with retry) and print the server version.
    """
    _setup()
    try:
        version = wait_for_database()
    except psycopg.Error as exc:
        console.print(f"[red]Database unreachable: {exc}[/red]")
        raise typer.Exit(code=1) from exc
    console.print(f"[green]Connected[/green] {version}")


@app.command()
def views() -> None:
    """
    List the admin views.
    """
    render.print_navigation(AdminShell(), console)


@app.command()
def tables() -> None:
    """
    List the tables of the configured schema.
    """

    async def action(services: AppServices) -> None:
        render.print_tables(services.inspector.schema, await services.explorer.tables(), console)

    _run(action)


@app.command()
def describe(table: str = typer.Argument(..., help="Table to describe.")) -> None:
    """
    Show the column structure of a table.
    """

    async def action(services: AppServices) -> None:
        try:
            description = await services.explorer.describe(table)
        except TableNotFoundError as exc:
            console.print(f"[yellow]{exc.error.message}[/yellow]")
            raise typer.Exit(code=1) from exc
        render.print_columns(description.table, description.columns, console)

    _run(action)


def _list_view(view_id: str, services: AppServices) -> ListView:
    spec = VIEWS.get(view_id)
    if spec is None:
        console.print(f"[red]Unknown view '{view_id}'.[/red] Available: {', '.join(VIEWS)}")
        raise typer.Exit(code=2)
    return ListView(spec, services.gateway, services.inspector, services.page_size)


async def _show(load: Awaitable[ViewState]) -> ViewState:
    with console.status("Loading..."):
        state = await load
    render.print_view_state(state, console)
    return state


@app.command("list")
def list_rows(
    view_id: str = typer.Argument(..., help="View to show (e.g. films, customers, rentals)."),
    page: int = typer.Option(1, "--page", "-p", min=1, help="Page number (1-based)."),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Search term."),
    table: Optional[str] = typer.Option(None, "--table", help="Browse a raw table instead of a view."),
) -> None:
    """
    Show one page of a list view.
    """

    async def action(services: AppServices) -> None:
        if table is not None:
            try:
                view = await services.explorer.view(table)
            except TableNotFoundError as exc:
                console.print(f"[yellow]{exc.error.message}[/yellow]")
                raise typer.Exit(code=1) from exc
        else:
            view = _list_view(view_id, services)
        await _show(view.load(page=page, search=search))

    _run(action)


@app.command()
def browse(
    view_id: str = typer.Argument("films", help="View to browse."),
) -> None:
    """
    Page through a view interactively: [n]ext, [p]revious, [s]earch, [g]o to page, [r]efresh, [q]uit.
    """

    async def action(services: AppServices) -> None:
        shell = AdminShell()
        if shell.knows(view_id):
            shell.request_view(view_id)
        shell.on_change(lambda new, old: console.print(f"[dim]{old} -> {new}[/dim]"))
        view = _list_view(view_id, services)
        state = await _show(view.load())
        while True:
            choice = typer.prompt("[n]ext [p]rev [s]earch [g]oto [r]efresh [q]uit", default="n").strip().lower()
            if choice.startswith("q"):
                return
            if choice.startswith("n"):
                state = await _show(view.next_page())
            elif choice.startswith("p"):
                state = await _show(view.prev_page())
            elif choice.startswith("s"):
                term = typer.prompt("Search", default="", show_default=False)
                state = await _show(view.search(term))
            elif choice.startswith("g"):
                page = typer.prompt("Page", type=int)
                if page >= 1:
                    state = await _show(view.go_to(page))
            elif choice.startswith("r"):
                state = await _show(view.refresh())
            if state.suggested_view and typer.confirm("Open the database explorer?", default=False):
                shell.request_view(state.suggested_view)
                render.print_tables(services.inspector.schema, await services.explorer.tables(), console)
                return

    _run(action)


@app.command()
def dashboard() -> None:
    """
    Show the store dashboard cards.
    """

    async def action(services: AppServices) -> None:
        render.print_dashboard(await sakila_dashboard(services.gateway, services.inspector), console)

    _run(action)


@app.command()
def statistics() -> None:
    """
    Show the streaming platform statistics.
    """

    async def action(services: AppServices) -> None:
        render.print_dashboard(await streaming_statistics(services.gateway, services.inspector), console)

    _run(action)


@app.command()
def analytics() -> None:
    """
    Show analytics for every metric the database supports.
    """

    async def action(services: AppServices) -> None:
        render.print_analytics(await services.analytics.report(), console)

    _run(action)


@app.command()
def sales() -> None:
    """
    Show sales by film category.
    """

    async def action(services: AppServices) -> None:
        render.print_sales(await sales_by_category(services.gateway, services.inspector), console)

    _run(action)


@app.command()
def status() -> None:
    """
    Run the startup connectivity check through the pool.
    """

    async def action(services: AppServices) -> Any:
        result = await startup_check(services.gateway)
        render.print_connectivity(result, console)
        return result

    result = _run(action)
    if not result.ok:
        raise typer.Exit(code=1)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default API_HOST)."),
    port: Optional[int] = typer.Option(None, "--port", help="Port (default API_PORT)."),
) -> None:
    """
    Run the admin API server.
    """
    _setup()
    settings = get_settings()
    if not settings.admin_api_key:
        console.print("[yellow]ADMIN_API_KEY is not set; every admin route will answer 401.[/yellow]")
    uvicorn.run(
        create_app(settings),
        host=host or settings.api_host,
        port=port or settings.api_port,
        log_config=None,
    )


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
