"""treepath recompute -- rebuild every path from the parent references."""

from __future__ import annotations

import click


@click.command()
@click.pass_context
def recompute(ctx: click.Context) -> None:
    """Recompute all paths from scratch."""
    from treepath.cli import _tree_session

    with _tree_session(ctx) as (tree, console):
        affected = tree.compute_all_paths()
        console.print(f"Recomputed paths: [green]{affected}[/green] row(s) affected")
