"""
Rich rendering for the CLI console.

Turns view states and reports into rich tables and panels. Nothing here
touches the database.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from sakila_admin.domain.models import ColumnInfo
from sakila_admin.reports.analytics import AnalyticsReport, MetricKind
from sakila_admin.reports.dashboard import CardResult, CardStatus, DashboardReport
from sakila_admin.shell import AdminShell, ConnectivityStatus
from sakila_admin.views.list_view import ViewState
from sakila_admin.views.sales import SalesReport
from sakila_admin.views.specs import currency, full_name, short_date, timestamp

BAR_WIDTH = 30


def print_view_state(state: ViewState, console: Optional[Console] = None) -> None:
    """
    Render a list view: the rows table, pager caption and any error/empty panel.

    Stale rows (kept from the last successful load) are shown dimmed beneath
    the error panel.
    """
    console = console or Console()

    if state.status == "not_found":
        console.print(
            Panel(
                f"{state.message}\n[dim]Try the database explorer: sakila-admin tables[/dim]",
                title=f"{state.title}: table not found",
                border_style="yellow",
            )
        )
        return

    if state.status == "error":
        console.print(
            Panel(
                state.message or "Unknown error",
                title=f"{state.title}: error",
                border_style="red",
            )
        )
        if not state.stale:
            return

    if state.status == "empty":
        console.print(Panel(state.message or "Nothing to show", title=state.title, border_style="blue"))
        return

    caption = f"Page {state.page} of {max(state.total_pages, 1)} · {state.total_count:,} rows"
    if state.search:
        caption += f' · search "{state.search}"'
    disabled = [a.label for a in (*state.row_actions, *state.view_actions) if not a.enabled]
    if disabled:
        caption += f"\n[dim]{', '.join(disabled)}: not implemented[/dim]"

    table = Table(
        title=state.title + (" [dim](stale)[/dim]" if state.stale else ""),
        box=box.ROUNDED,
        caption=caption,
    )
    for index, label in enumerate(state.columns):
        table.add_column(label, style="cyan" if index == 0 else None, overflow="fold")
    for cells in state.cells:
        table.add_row(*(escape(cell) for cell in cells), style="dim" if state.stale else None)
    console.print(table)


def _card_value(card: CardResult) -> str:
    if card.status is CardStatus.NOT_FOUND:
        return "[yellow]table not found[/yellow]"
    if card.status is CardStatus.ERROR:
        return f"[red]error: {card.message}[/red]"
    value = card.value
    if value is None:
        return "N/A"
    if "revenue" in card.key:
        return currency(value)
    if isinstance(value, int):
        return f"{value:,}"
    return str(value)


def _list_card_rows(card: CardResult) -> List[str]:
    lines: List[str] = []
    for row in card.value or []:
        if card.key == "top_films":
            lines.append(f"{row.get('title')} ({currency(row.get('rental_rate') or 0)})")
        elif card.key == "recent_rentals":
            film = ((row.get("inventory") or {}).get("film") or {}).get("title") or "Unknown"
            customer = full_name(row.get("customer")) if row.get("customer") else "Unknown"
            lines.append(f"{timestamp(row.get('rental_date'))}  {film} - {customer}")
        elif card.key == "films_per_category":
            lines.append(f"{row.get('name')}: {row.get('film_count')}")
        else:
            lines.append(f"{row.get('title')} ({row.get('views') or 0:,} views, {short_date(row.get('created_at'))})")
    return lines


def print_dashboard(report: DashboardReport, console: Optional[Console] = None) -> None:
    console = console or Console()
    table = Table(title=report.title, box=box.ROUNDED, caption=f"Computed in {report.duration_ms:.0f} ms")
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right", style="bold green")

    lists: List[CardResult] = []
    for card in report.cards:
        if card.status is CardStatus.OK and isinstance(card.value, list):
            lists.append(card)
            continue
        table.add_row(card.title, _card_value(card))
    console.print(table)

    for card in lists:
        body = "\n".join(_list_card_rows(card)) or "[dim]No data[/dim]"
        console.print(Panel(body, title=card.title, border_style="cyan"))


def _bar(percentage: float) -> str:
    filled = int(round(BAR_WIDTH * min(max(percentage, 0), 100) / 100))
    return "█" * filled + "·" * (BAR_WIDTH - filled)


def print_analytics(report: AnalyticsReport, console: Optional[Console] = None) -> None:
    console = console or Console()
    for metric in report.metrics:
        if metric.status != "ok":
            message = metric.error.message if metric.error else "unknown error"
            console.print(Panel(message, title=f"{metric.title}: error", border_style="red"))
            continue
        table = Table(title=metric.title, box=box.SIMPLE)
        if metric.kind is MetricKind.DISTRIBUTION:
            table.add_column("Value", style="cyan")
            table.add_column("Count", justify="right")
            table.add_column("Share", justify="right")
            table.add_column("")
            for item in metric.distribution:
                table.add_row(item.name, f"{item.count:,}", f"{item.percentage}%", _bar(item.percentage))
        else:
            table.add_column("Month", style="cyan")
            table.add_column("Count", justify="right")
            table.add_column("")
            peak = max((point.count for point in metric.series), default=0)
            for point in metric.series:
                share = point.count / peak * 100 if peak else 0
                table.add_row(point.period, f"{point.count:,}", _bar(share))
        if not table.rows:
            table.caption = "No data"
        console.print(table)

    if report.unavailable:
        table = Table(
            title="Unavailable metrics",
            box=box.ROUNDED,
            caption=f"Reporting schema {report.version}",
        )
        table.add_column("Metric", style="cyan")
        table.add_column("Reason", style="yellow")
        for missing in report.unavailable:
            table.add_row(missing.title, missing.reason)
        console.print(table)


def print_sales(report: SalesReport, console: Optional[Console] = None) -> None:
    console = console or Console()
    if report.status in ("not_found", "error", "empty"):
        style = {"not_found": "yellow", "error": "red", "empty": "blue"}[report.status]
        console.print(Panel(report.message or report.status, title="Sales by Category", border_style=style))
        return
    table = Table(
        title="Sales by Category",
        box=box.ROUNDED,
        caption=f"Total {currency(report.total_sales)}",
    )
    table.add_column("Category", style="cyan")
    table.add_column("Total Sales", justify="right", style="bold green")
    table.add_column("Share", justify="right")
    table.add_column("")
    for row in report.rows:
        table.add_row(row.category, currency(row.total_sales), f"{row.percentage:.1f}%", _bar(row.percentage))
    console.print(table)


def print_tables(schema: str, tables: Iterable[str], console: Optional[Console] = None) -> None:
    console = console or Console()
    table = Table(title=f"Tables in {schema}", box=box.ROUNDED)
    table.add_column("Table", style="cyan")
    for name in tables:
        table.add_row(name)
    console.print(table)


def print_columns(table_name: str, columns: Iterable[ColumnInfo], console: Optional[Console] = None) -> None:
    console = console or Console()
    table = Table(title=table_name, box=box.ROUNDED)
    table.add_column("Column", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Nullable", justify="center")
    for column in columns:
        table.add_row(column.name, column.declared_type, "yes" if column.nullable else "no")
    console.print(table)


def print_navigation(shell: AdminShell, console: Optional[Console] = None) -> None:
    console = console or Console()
    table = Table(title="Admin views", box=box.ROUNDED)
    table.add_column("Section", style="magenta")
    table.add_column("View", style="cyan")
    table.add_column("Label")
    for item in shell.navigation:
        label = item.label + (f" ({', '.join(item.views)})" if item.views else "")
        table.add_row(item.section, item.id, label)
    console.print(table)


def print_connectivity(status: ConnectivityStatus, console: Optional[Console] = None) -> None:
    console = console or Console()
    if status.ok:
        console.print(f"[green]{status.message}[/green] ({status.latency_ms} ms)")
    else:
        console.print(f"[red]{status.message}[/red]")


__all__ = [
    "print_analytics",
    "print_columns",
    "print_connectivity",
    "print_dashboard",
    "print_navigation",
    "print_sales",
    "print_tables",
    "print_view_state",
]
