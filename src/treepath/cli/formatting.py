"""Rich formatting helpers for the treepath CLI.

Rich auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

if TYPE_CHECKING:
    from treepath.models.node import NodeInfo


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def _node_label(info: NodeInfo) -> str:
    label = f" [bold]{escape(info.label)}[/bold]" if info.label else ""
    path = escape(info.path) if info.path else "[dim]<no path>[/dim]"
    return f"[yellow]{escape(str(info.key))}[/yellow]{label} [dim]{path}[/dim]"


def format_forest(infos: list[NodeInfo], console: Console, *, title: str = "tree") -> None:
    """Display nodes as nested trees.

    *infos* must be sorted by path so every parent precedes its children.
    Nodes whose parent is not in *infos* start a new top-level branch.
    """
    if not infos:
        console.print("[dim]No nodes.[/dim]")
        return

    top = Tree(f"[dim]{escape(title)}[/dim]")
    branches: dict[object, Tree] = {}
    for info in infos:
        parent = branches.get(info.parent_key, top)
        branches[info.key] = parent.add(_node_label(info))
    console.print(top)


def format_move_result(key: object, affected: int, console: Console) -> None:
    """Display the outcome of a reparent."""
    console.print(
        f"Moved [yellow]{escape(str(key))}[/yellow]: "
        f"[green]{affected}[/green] path(s) rewritten"
    )
