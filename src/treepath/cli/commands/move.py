"""treepath move -- reparent a node and rewrite its subtree's paths."""

from __future__ import annotations

import click

from treepath.cli.formatting import format_move_result


@click.command()
@click.argument("key", type=int)
@click.option("--parent", type=int, default=None, help="New parent node id.")
@click.option("--root", "as_root", is_flag=True, help="Detach the node and make it a root.")
@click.pass_context
def move(ctx: click.Context, key: int, parent: int | None, as_root: bool) -> None:
    """Move node KEY under --parent, or make it a root with --root."""
    from treepath.cli import _tree_session

    if (parent is None) == (not as_root):
        raise click.UsageError("Pass exactly one of --parent or --root.")

    with _tree_session(ctx) as (tree, console):
        node = tree.get(key)
        if as_root:
            affected = tree.set_as_root(node)
        else:
            affected = tree.set_as_child_of(node, tree.get(parent))
        format_move_result(key, affected, console)
