"""treepath add -- insert a node."""

from __future__ import annotations

import click


@click.command()
@click.argument("name")
@click.option("--key", type=int, default=None, help="Explicit node id (auto-assigned if omitted).")
@click.option("--parent", type=int, default=None, help="Parent node id (root if omitted).")
@click.pass_context
def add(ctx: click.Context, name: str, key: int | None, parent: int | None) -> None:
    """Insert a node called NAME and compute its path."""
    from treepath.cli import _tree_session

    with _tree_session(ctx) as (tree, console):
        if parent is not None:
            tree.get(parent)
        node = tree.create(key, parent=parent, name=name)
        console.print(f"Added [yellow]{node.id}[/yellow] at {node.path}")
