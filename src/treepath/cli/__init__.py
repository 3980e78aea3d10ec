"""treepath CLI -- inspect and repair materialized paths from the terminal.

This module is NEVER imported from treepath/__init__.py.
It is only loaded via the ``treepath`` entry point defined in pyproject.toml,
and operates on the default ``tree_nodes`` table.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING

try:
    import click
except ImportError:
    raise ImportError(
        "CLI dependencies not installed. Install with: pip install treepath[cli]"
    ) from None

from treepath.cli.formatting import format_error, get_console

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rich.console import Console

    from treepath.tree import PathTree


@click.group()
@click.option(
    "--db",
    default=".treepath.db",
    envvar="TREEPATH_DB",
    help="Path to the tree database.",
)
@click.option(
    "--separator",
    default="/",
    show_default=True,
    help="Path separator used by the table.",
)
@click.pass_context
def cli(ctx: click.Context, db: str, separator: str) -> None:
    """treepath: materialized-path trees in a relational table."""
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db
    ctx.obj["separator"] = separator


@contextmanager
def _tree_session(ctx: click.Context) -> Iterator[tuple[PathTree, Console]]:
    """Open a PathTree, yield (tree, console), and handle cleanup.

    Formats any exception as a CLI error and exits with status 1.
    """
    from treepath.models.config import TreeConfig
    from treepath.tree import PathTree

    console = get_console()
    try:
        tree = PathTree.open(
            ctx.obj["db_path"],
            config=TreeConfig(path_separator=ctx.obj["separator"]),
        )
        try:
            yield tree, console
        finally:
            tree.close()
    except SystemExit:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None


# Register subcommands after cli group is defined
from treepath.cli.commands.add import add  # noqa: E402
from treepath.cli.commands.depth import depth  # noqa: E402
from treepath.cli.commands.move import move  # noqa: E402
from treepath.cli.commands.recompute import recompute  # noqa: E402
from treepath.cli.commands.show import show  # noqa: E402

cli.add_command(add)
cli.add_command(depth)
cli.add_command(move)
cli.add_command(recompute)
cli.add_command(show)
