"""Path computation for treepath.

PathComputer keeps the materialized path of a node and its subtree in
step with the parent references:

- ``update_path`` / ``update_path_and_explicit_path`` recompute one node,
  rewrite the stored prefix of its whole subtree in one statement, then
  walk the subtree root-to-leaf to pick up rows the rewrite could not
  reach (children whose path was never computed).
- ``compute_all_paths`` rebuilds every path of the table from scratch by
  resolving one level of depth per iteration until a fixpoint.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from treepath.engine.paths import join_explicit_path, join_path
from treepath.exceptions import CircularTreeRelationError, CycleKind

if TYPE_CHECKING:
    from treepath.models.config import TreeConfig
    from treepath.storage.repositories import PathStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Synced:
    """Outcome of syncing one node: rows written and its up-to-date paths."""

    count: int
    path: str
    explicit_path: str | None = None


def walk_subtree(
    store: PathStore,
    config: TreeConfig,
    start: Any,
    visit: Callable[[Any, Any], bool],
) -> Iterator[Any]:
    """Breadth-first walk below *start*, one store query per level.

    ``visit(child, parent_key)`` is called for each child in root-to-leaf
    order and returns whether to descend into that child. Yields every
    visited child. Revisiting a key means the parent references loop.
    """
    seen = {config.key_of(start)}
    level = [config.key_of(start)]
    while level:
        next_level = []
        for child in store.get_children(level):
            key = config.key_of(child)
            if key in seen:
                raise CircularTreeRelationError(store.node_type, key)
            seen.add(key)
            yield child
            if visit(child, config.parent_key_of(child)):
                next_level.append(key)
        level = next_level


class PathComputer:
    """Computes and repairs materialized paths against a PathStore."""

    def __init__(self, store: PathStore, config: TreeConfig) -> None:
        self._store = store
        self._config = config

    @property
    def config(self) -> TreeConfig:
        return self._config

    # ------------------------------------------------------------------
    # Single node
    # ------------------------------------------------------------------

    def refresh_path(self, node: Any) -> int:
        """Recompute *node*'s path, and its explicit path when configured."""
        if self._config.has_explicit_path_column:
            return self.update_path_and_explicit_path(node)
        return self.update_path(node)

    def update_path(self, node: Any) -> int:
        """Recompute *node*'s path and propagate it to the subtree.

        Returns the number of rows written; 0 when the path was already
        current.
        """
        return self._update(node, explicit=False)

    def update_path_and_explicit_path(self, node: Any) -> int:
        """Same as update_path, keeping the explicit path column in step."""
        return self._update(node, explicit=True)

    def _update(self, node: Any, *, explicit: bool) -> int:
        cfg = self._config
        count, parent = self._resolve_ancestry(node, explicit=explicit)
        parent_path = cfg.path_of(parent) if parent is not None else None
        parent_explicit = cfg.explicit_path_of(parent) if parent is not None else None

        synced = self._sync(node, parent_path, parent_explicit, explicit=explicit)
        if synced.count == 0:
            return count
        count += synced.count

        # The prefix rewrite already fixed every stored descendant; the
        # walk only writes rows it could not reach.
        current = {cfg.key_of(node): synced}

        def visit(child: Any, parent_key: Any) -> bool:
            nonlocal count
            above = current[parent_key]
            result = self._sync(
                child, above.path, above.explicit_path, explicit=explicit
            )
            current[cfg.key_of(child)] = result
            count += result.count
            return result.count > 0

        for _ in walk_subtree(self._store, cfg, node, visit):
            pass

        logger.debug(
            "Refreshed %s %s: %d row(s) affected",
            self._store.node_type, cfg.key_of(node), count,
        )
        return count

    def _resolve_ancestry(self, node: Any, *, explicit: bool) -> tuple[int, Any]:
        """Compute missing ancestor paths root-down before *node* itself.

        Returns (rows written, parent of *node*).
        """
        cfg = self._config
        parent = self._parent_of(node)
        chain: list[Any] = []
        seen = {cfg.key_of(node)}
        ancestor = parent
        while ancestor is not None and self._needs_path(ancestor, explicit):
            key = cfg.key_of(ancestor)
            if key in seen:
                raise CircularTreeRelationError(self._store.node_type, key)
            seen.add(key)
            chain.append(ancestor)
            ancestor = self._parent_of(ancestor)

        count = 0
        above_path = cfg.path_of(ancestor) if ancestor is not None else None
        above_explicit = cfg.explicit_path_of(ancestor) if ancestor is not None else None
        for item in reversed(chain):
            synced = self._sync(item, above_path, above_explicit, explicit=explicit)
            count += synced.count
            above_path, above_explicit = synced.path, synced.explicit_path
        if chain:
            logger.debug(
                "Resolved %d pathless ancestor(s) of %s %s",
                len(chain), self._store.node_type, cfg.key_of(node),
            )
        return count, parent

    def _sync(
        self,
        node: Any,
        parent_path: str | None,
        parent_explicit: str | None,
        *,
        explicit: bool,
    ) -> _Synced:
        """Write *node*'s path given its parent's current paths."""
        cfg = self._config
        sep = cfg.path_separator
        key = cfg.key_of(node)
        current_path = cfg.path_of(node)
        new_path = join_path(parent_path, key, sep)

        if not explicit:
            if new_path == current_path:
                return _Synced(0, new_path)
            if current_path is None:
                return _Synced(self._store.set_first_path(key, new_path), new_path)
            logger.debug("Rewriting prefix %s -> %s", current_path, new_path)
            return _Synced(self._store.rewrite_prefix(current_path, new_path), new_path)

        current_explicit = cfg.explicit_path_of(node)
        new_explicit = join_explicit_path(parent_explicit, cfg.label_of(node), sep)
        if new_path == current_path and new_explicit == current_explicit:
            return _Synced(0, new_path, new_explicit)
        if current_path is None:
            count = self._store.set_first_path(key, new_path, new_explicit)
            return _Synced(count, new_path, new_explicit)
        logger.debug(
            "Rewriting prefix %s -> %s (explicit %s -> %s)",
            current_path, new_path, current_explicit, new_explicit,
        )
        count = self._store.rewrite_prefix_with_explicit(
            current_path, new_path, current_explicit, new_explicit
        )
        return _Synced(count, new_path, new_explicit)

    def _parent_of(self, node: Any) -> Any | None:
        parent_key = self._config.parent_key_of(node)
        if parent_key is None:
            return None
        parent = self._store.get(parent_key)
        if parent is None:
            logger.warning(
                "%s %s references missing parent %s; treating it as a root",
                self._store.node_type, self._config.key_of(node), parent_key,
            )
        return parent

    def _needs_path(self, node: Any, explicit: bool) -> bool:
        if self._config.path_of(node) is None:
            return True
        return explicit and self._config.explicit_path_of(node) is None

    # ------------------------------------------------------------------
    # Whole table
    # ------------------------------------------------------------------

    def compute_all_paths(self) -> int:
        """Recompute every path of the table from the parent references.

        Returns the number of rows given a path.

        Raises:
            CircularTreeRelationError: If some rows cannot be resolved
                within ``max_iterations`` levels, or an iteration makes no
                progress. Either means a cycle or a dangling parent.
        """
        store = self._store
        limit = self._config.max_iterations

        store.clear_paths()
        affected = store.assign_root_paths()
        logger.debug("Assigned %d root path(s) for %s", affected, store.node_type)

        iteration = 0
        while store.has_unresolved():
            if iteration >= limit:
                logger.warning(
                    "%s paths did not converge after %d iteration(s)",
                    store.node_type, iteration,
                )
                raise CircularTreeRelationError(
                    store.node_type, kind=CycleKind.NON_CONVERGENT
                )
            resolved = store.resolve_next_level()
            iteration += 1
            if resolved == 0:
                logger.warning(
                    "%s paths stopped resolving at iteration %d",
                    store.node_type, iteration,
                )
                raise CircularTreeRelationError(
                    store.node_type, kind=CycleKind.NON_CONVERGENT
                )
            affected += resolved
            logger.debug("Iteration %d resolved %d row(s)", iteration, resolved)

        logger.debug(
            "Computed all %s paths: %d row(s) in %d iteration(s)",
            store.node_type, affected, iteration,
        )
        return affected
