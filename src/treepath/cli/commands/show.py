"""treepath show -- display the tree."""

from __future__ import annotations

import click

from treepath.cli.formatting import format_forest


@click.command()
@click.argument("key", type=int, required=False)
@click.pass_context
def show(ctx: click.Context, key: int | None) -> None:
    """Show the whole forest, or the subtree rooted at KEY."""
    from treepath.cli import _tree_session

    with _tree_session(ctx) as (tree, console):
        if key is None:
            roots = tree.roots()
            nodes = []
            for root in roots:
                nodes.append(root)
                nodes.extend(tree.descendants(root))
            title = "tree"
        else:
            top = tree.get(key)
            nodes = [top, *tree.descendants(top)]
            title = top.path or str(key)
        format_forest([tree.info(n) for n in nodes], console, title=title)
