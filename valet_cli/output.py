"""
Rich-powered console output for the valet-router command line.
"""

import sys

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

console = Console(force_terminal=None, legacy_windows=True)

_USE_ASCII = not sys.stdout.isatty()

STATUS_STYLES = {
    "ok": ("+" if _USE_ASCII else "✓", "green"),
    "error": ("x" if _USE_ASCII else "✗", "red"),
    "warning": ("!", "yellow"),
}


def print_success(message: str):
    icon = "+" if _USE_ASCII else "✓"
    console.print(f"[green]{icon}[/green] {message}")


def print_error(message: str):
    icon = "x" if _USE_ASCII else "✗"
    console.print(f"[red]{icon}[/red] {message}", style="red")


def print_warning(message: str):
    console.print(f"[yellow]![/yellow] {message}")


def status_icon(status: str) -> Text:
    icon, style = STATUS_STYLES.get(status, ("?", "dim"))
    return Text(icon, style=style)


def sites_table(rows: list[tuple[str, str, str, bool, str]]) -> Table:
    """
    Create a table of discoverable sites.

    Args:
        rows: (site, url, driver, secured, path) tuples
    """
    table = Table(title="Sites", show_header=True, header_style="bold cyan")

    table.add_column("Site", style="bold")
    table.add_column("URL", style="cyan")
    table.add_column("Driver")
    table.add_column("SSL", justify="center")
    table.add_column("Path", style="dim")

    for site, url, driver, secured, path in rows:
        driver_text = Text(driver) if driver else Text("none", style="yellow")
        table.add_row(site, url, driver_text, status_icon("ok") if secured else Text(""), path)

    return table


def check_panel(checks: list[tuple[str, bool, str]]) -> Panel:
    """
    Create a panel of configuration checks.

    Args:
        checks: List of (check_name, passed, message)
    """
    lines = []
    for check_name, passed, message in checks:
        icon = status_icon("ok" if passed else "error")
        lines.append(Text.assemble(icon, f" {check_name}: ", Text(message, style="dim" if passed else "yellow")))
    return Panel(Text("\n").join(lines), title="Config Check", border_style="cyan")


def print_sites(rows: list[tuple[str, str, str, bool, str]]):
    console.print(sites_table(rows))


def print_checks(checks: list[tuple[str, bool, str]]):
    console.print(check_panel(checks))
