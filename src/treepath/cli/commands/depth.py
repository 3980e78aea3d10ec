"""treepath depth -- report the deepest level of the tree."""

from __future__ import annotations

import click


@click.command()
@click.pass_context
def depth(ctx: click.Context) -> None:
    """Print the depth of the deepest node."""
    from treepath.cli import _tree_session

    with _tree_session(ctx) as (tree, console):
        deepest = tree.deepest_depth()
        if deepest is None:
            console.print("[dim]No computed paths.[/dim]")
        else:
            console.print(f"Deepest depth: [green]{deepest}[/green]")
