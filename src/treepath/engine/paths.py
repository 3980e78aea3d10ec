"""Pure helpers for materialized paths.

A path is the separator-joined chain of keys from a root down to a node,
always starting with the separator (``/1/2/4``). Nothing here touches
storage; every function takes the separator (or the config) explicitly.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from treepath.exceptions import InvalidNodeKeyError


def segment(key: Any, separator: str) -> str:
    """Render a key as a path segment.

    Raises:
        InvalidNodeKeyError: If the key's string form contains the separator.
    """
    text = str(key)
    if separator in text:
        raise InvalidNodeKeyError(key, separator)
    return text


def join_path(parent_path: str | None, key: Any, separator: str) -> str:
    """Build a node's path from its parent's path (None for roots)."""
    return (parent_path or "") + separator + segment(key, separator)


def join_explicit_path(parent_explicit: str | None, label: Any, separator: str) -> str:
    """Build an explicit path from the parent's explicit path and a label.

    Labels are human-readable and are not validated against the separator.
    """
    return (parent_explicit or "") + separator + ("" if label is None else str(label))


def is_prefix_path(ancestor_path: str | None, path: str | None, separator: str) -> bool:
    """True if *path* lies strictly below *ancestor_path*.

    The separator is appended to the ancestor side, so ``/1/2`` is not a
    prefix of ``/1/20``. Null paths never match.
    """
    if ancestor_path is None or path is None:
        return False
    return path.startswith(ancestor_path + separator)


def split_path(path: str, separator: str) -> list[str]:
    """Return the key segments of a path, root first."""
    return path.split(separator)[1:]


def depth_of(path: str | None, separator: str, root_depth: int = 0) -> int | None:
    """Depth derived from a path; roots have depth *root_depth*."""
    if path is None:
        return None
    return path.count(separator) - 1 + root_depth


def root_segment(path: str, separator: str) -> str:
    """Key segment of the root a path descends from."""
    return split_path(path, separator)[0]


def direct_child_segment(ancestor_path: str, path: str, separator: str) -> str | None:
    """Key segment of the child of *ancestor_path* that *path* goes through.

    Returns None when *path* is not below *ancestor_path*.
    """
    if not is_prefix_path(ancestor_path, path, separator):
        return None
    rest = path[len(ancestor_path) + len(separator):]
    return rest.split(separator, 1)[0]


def ancestor_paths(path: str, separator: str) -> list[str]:
    """Every proper ancestor path of *path*, root first."""
    parts = split_path(path, separator)
    return [
        separator + separator.join(parts[:i])
        for i in range(1, len(parts))
    ]


def reduce_to_shortest(paths: Iterable[str | None], separator: str) -> list[str]:
    """Reduce paths to the shortest non-overlapping covering set.

    Used for descendant filters: any path below a kept path is already
    covered by that path's prefix filter. Null paths are ignored.
    """
    kept: list[str] = []
    for path in sorted({p for p in paths if p is not None}):
        if not any(is_prefix_path(k, path, separator) for k in kept):
            kept.append(path)
    return kept


def reduce_to_longest(paths: Iterable[str | None], separator: str) -> list[str]:
    """Reduce paths to the longest covering set.

    Used for ancestor filters: the ancestors of a path are a superset of
    the ancestors of every path above it. Sorting descending puts every
    extension of a path before the path itself.
    """
    kept: list[str] = []
    for path in sorted({p for p in paths if p is not None}, reverse=True):
        if not any(is_prefix_path(path, k, separator) for k in kept):
            kept.append(path)
    return kept
