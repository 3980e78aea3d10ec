"""Cycle-safe reparenting for treepath.

Every parent assignment is checked before anything is written, so a
rejected operation leaves the tree exactly as it was.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from treepath.engine.paths import is_prefix_path
from treepath.exceptions import CircularTreeRelationError, CycleKind

if TYPE_CHECKING:
    from treepath.engine.computer import PathComputer
    from treepath.models.config import TreeConfig
    from treepath.storage.repositories import PathStore

logger = logging.getLogger(__name__)


class CycleGuard:
    """Reparenting operations that refuse to close a cycle."""

    def __init__(
        self,
        store: PathStore,
        config: TreeConfig,
        computer: PathComputer,
    ) -> None:
        self._store = store
        self._config = config
        self._computer = computer

    def would_cycle(self, node: Any, new_parent: Any) -> bool:
        """True if making *new_parent* the parent of *node* closes a cycle.

        Uses the path prefix test when both paths are computed, and walks
        *new_parent*'s parent chain through the store otherwise.
        """
        cfg = self._config
        node_key = cfg.key_of(node)
        if cfg.key_of(new_parent) == node_key:
            return True
        node_path = cfg.path_of(node)
        parent_path = cfg.path_of(new_parent)
        if node_path is not None and parent_path is not None:
            return is_prefix_path(node_path, parent_path, cfg.path_separator)

        seen: set[Any] = set()
        key = cfg.parent_key_of(new_parent)
        while key is not None and key not in seen:
            if key == node_key:
                return True
            seen.add(key)
            ancestor = self._store.get(key)
            if ancestor is None:
                break
            key = cfg.parent_key_of(ancestor)
        return key is not None and key in seen

    def set_as_child_of(self, node: Any, new_parent: Any | None) -> int:
        """Make *node* a child of *new_parent* (a root if None).

        Returns the number of rows whose path was rewritten.

        Raises:
            CircularTreeRelationError: If *node* is *new_parent* or one of
                its ancestors.
        """
        if new_parent is None:
            return self.set_as_root(node)
        if self.would_cycle(node, new_parent):
            self._reject(node, new_parent)
        setattr(node, self._config.parent_column, self._config.key_of(new_parent))
        self._store.save(node)
        return self._computer.refresh_path(node)

    def set_as_parent_of(self, node: Any, child: Any) -> int:
        """Make *child* a child of *node*.

        Raises:
            CircularTreeRelationError: If *child* is *node* or one of its
                ancestors.
        """
        if self.would_cycle(child, node):
            self._reject(node, child)
        setattr(child, self._config.parent_column, self._config.key_of(node))
        self._store.save(child)
        return self._computer.refresh_path(child)

    def set_as_root(self, node: Any) -> int:
        """Detach *node* from its parent."""
        setattr(node, self._config.parent_column, None)
        self._store.save(node)
        return self._computer.refresh_path(node)

    def _reject(self, node: Any, other: Any) -> None:
        key = self._config.key_of(node)
        logger.debug(
            "Rejected reparent of %s %s against %s",
            self._store.node_type, key, self._config.key_of(other),
        )
        raise CircularTreeRelationError(
            self._store.node_type, key, kind=CycleKind.REPARENT
        )
