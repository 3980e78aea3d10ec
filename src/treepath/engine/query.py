"""Tree queries for treepath.

Predicates compare two nodes through their parent references or paths
without touching storage (``is_leaf`` excepted). Relation lookups answer
"descendants of" / "ancestors of" with prefix filters, and the batch
variants collapse many requesters into the fewest filters before
re-partitioning the fetched rows per requester.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from treepath.engine.paths import (
    depth_of,
    direct_child_segment,
    is_prefix_path,
    join_explicit_path,
    reduce_to_longest,
    reduce_to_shortest,
    root_segment,
)
from treepath.models.node import NodeInfo

if TYPE_CHECKING:
    from treepath.models.config import TreeConfig
    from treepath.storage.repositories import PathStore

logger = logging.getLogger(__name__)


class TreeQueryEngine:
    """Read-side operations over one node type."""

    def __init__(self, store: PathStore, config: TreeConfig) -> None:
        self._store = store
        self._config = config

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def is_root(self, node: Any) -> bool:
        return self._config.parent_key_of(node) is None

    def is_leaf(self, node: Any) -> bool:
        return not self._store.has_children(self._config.key_of(node))

    def is_sibling_of(self, a: Any, b: Any) -> bool:
        return self._config.parent_key_of(a) == self._config.parent_key_of(b)

    def is_parent_of(self, a: Any, b: Any) -> bool:
        """True if *a* is the direct parent of *b*."""
        return self._config.parent_key_of(b) == self._config.key_of(a)

    def is_child_of(self, a: Any, b: Any) -> bool:
        """True if *a* is a direct child of *b*."""
        return self._config.parent_key_of(a) == self._config.key_of(b)

    def is_ancestor_of(self, a: Any, b: Any) -> bool:
        """True if *a* is strictly above *b*."""
        cfg = self._config
        return is_prefix_path(cfg.path_of(a), cfg.path_of(b), cfg.path_separator)

    def is_descendant_of(self, a: Any, b: Any) -> bool:
        """True if *a* is strictly below *b*."""
        return self.is_ancestor_of(b, a)

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    def depth(self, node: Any) -> int | None:
        cfg = self._config
        return depth_of(cfg.path_of(node), cfg.path_separator, cfg.root_depth)

    def deepest_depth(self) -> int | None:
        return self._store.deepest_depth()

    def explicit_path(self, node: Any) -> str | None:
        """The label path of *node*.

        Read from the explicit path column when one is configured,
        otherwise built from the ancestors' labels.
        """
        cfg = self._config
        if cfg.has_explicit_path_column:
            return cfg.explicit_path_of(node)
        if cfg.path_of(node) is None:
            return None
        explicit: str | None = None
        for item in [*self.ancestors(node), node]:
            explicit = join_explicit_path(explicit, cfg.label_of(item), cfg.path_separator)
        return explicit

    def info(self, node: Any) -> NodeInfo:
        cfg = self._config
        label = cfg.label_of(node)
        return NodeInfo(
            key=cfg.key_of(node),
            parent_key=cfg.parent_key_of(node),
            path=cfg.path_of(node),
            explicit_path=self.explicit_path(node),
            label=None if label is None else str(label),
            depth=self.depth(node),
        )

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    def parent(self, node: Any) -> Any | None:
        parent_key = self._config.parent_key_of(node)
        return None if parent_key is None else self._store.get(parent_key)

    def children(self, node: Any) -> list[Any]:
        """Direct children of *node*."""
        return self._store.get_children([self._config.key_of(node)])

    def siblings(self, node: Any, *, include_self: bool = False) -> list[Any]:
        """Nodes sharing *node*'s parent (other roots, for a root)."""
        cfg = self._config
        parent_key = cfg.parent_key_of(node)
        if parent_key is None:
            candidates = self._store.get_roots()
        else:
            candidates = self._store.get_children([parent_key])
        key = cfg.key_of(node)
        return [c for c in candidates if include_self or cfg.key_of(c) != key]

    def descendants(self, node: Any) -> list[Any]:
        """Every node below *node*, sorted by path."""
        return self.fetch_descendants_batch([node])[self._config.key_of(node)]

    def ancestors(self, node: Any) -> list[Any]:
        """Every node above *node*, root first."""
        return self.fetch_ancestors_batch([node])[self._config.key_of(node)]

    def root_of(self, node: Any) -> Any | None:
        """The root of *node*'s tree (*node* itself for a root)."""
        cfg = self._config
        path = cfg.path_of(node)
        if path is None:
            return None
        if self.is_root(node):
            return node
        root_key = root_segment(path, cfg.path_separator)
        for candidate in self.ancestors(node):
            if str(cfg.key_of(candidate)) == root_key:
                return candidate
        return None

    def group_by_direct_child(self, node: Any) -> dict[Any, list[Any]]:
        """Descendants of *node* grouped by the child they descend through.

        Each group starts with the child itself.
        """
        cfg = self._config
        path = cfg.path_of(node)
        children = {str(cfg.key_of(c)): cfg.key_of(c) for c in self.children(node)}
        groups: dict[Any, list[Any]] = {key: [] for key in children.values()}
        if path is None:
            return groups
        for item in self.descendants(node):
            seg = direct_child_segment(path, cfg.path_of(item), cfg.path_separator)
            if seg in children:
                groups[children[seg]].append(item)
        return groups

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    def descendant_filter_paths(self, nodes: Sequence[Any]) -> list[str]:
        """Shortest non-overlapping requester paths, one filter each."""
        cfg = self._config
        return reduce_to_shortest((cfg.path_of(n) for n in nodes), cfg.path_separator)

    def ancestor_filter_paths(self, nodes: Sequence[Any]) -> list[str]:
        """Longest requester paths, one inverted filter each."""
        cfg = self._config
        return reduce_to_longest((cfg.path_of(n) for n in nodes), cfg.path_separator)

    def fetch_descendants_batch(self, nodes: Sequence[Any]) -> dict[Any, list[Any]]:
        """Descendants of every node in *nodes*, keyed by requester key.

        Every requester gets an entry; lists are sorted by path.
        """
        kept = self.descendant_filter_paths(nodes)
        logger.debug(
            "Descendant batch: %d requester(s) -> %d filter(s)", len(nodes), len(kept)
        )
        rows = self._store.find_by_path_prefixes(kept) if kept else []
        return self._match(nodes, rows, lambda requester, row: self.is_ancestor_of(requester, row))

    def fetch_ancestors_batch(self, nodes: Sequence[Any]) -> dict[Any, list[Any]]:
        """Ancestors of every node in *nodes*, keyed by requester key.

        Every requester gets an entry; lists are sorted root first.
        """
        kept = self.ancestor_filter_paths(nodes)
        logger.debug(
            "Ancestor batch: %d requester(s) -> %d filter(s)", len(nodes), len(kept)
        )
        rows = self._store.find_prefixes_of(kept) if kept else []
        return self._match(nodes, rows, lambda requester, row: self.is_ancestor_of(row, requester))

    def _match(
        self,
        nodes: Sequence[Any],
        rows: list[Any],
        belongs: Callable[[Any, Any], bool],
    ) -> dict[Any, list[Any]]:
        cfg = self._config
        result: dict[Any, list[Any]] = {cfg.key_of(n): [] for n in nodes}
        if not rows:
            return result
        for requester in nodes:
            matched = [row for row in rows if belongs(requester, row)]
            matched.sort(key=lambda row: cfg.path_of(row))
            result[cfg.key_of(requester)] = matched
        return result
