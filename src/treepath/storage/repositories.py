"""Abstract store interface for treepath.

Defines the narrow contract the path engines consume. No SQLAlchemy
imports here -- pure abstract contracts.

The concrete implementation is in sqlite.py.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Sequence

from treepath.exceptions import NotYetImplementedError

if TYPE_CHECKING:
    from treepath.models.config import TreeConfig


class PathStore(ABC):
    """Row access for one node type.

    Bulk write methods return the number of affected rows. After any bulk
    write, nodes already loaded through the store must read the new
    paths on next access.
    """

    @property
    @abstractmethod
    def config(self) -> TreeConfig:
        """The configuration this store was bound with."""
        ...

    @property
    @abstractmethod
    def node_type(self) -> str:
        """Name of the node type, used in error messages."""
        ...

    # ------------------------------------------------------------------
    # Point access
    # ------------------------------------------------------------------

    @abstractmethod
    def get(self, key: Any) -> Any | None:
        """Get a node by key. Returns None if not found."""
        ...

    @abstractmethod
    def get_many(self, keys: Sequence[Any]) -> list[Any]:
        """Get all nodes whose key is in *keys* (missing keys are skipped)."""
        ...

    @abstractmethod
    def get_children(self, keys: Sequence[Any]) -> list[Any]:
        """Get the direct children of any of *keys*."""
        ...

    @abstractmethod
    def get_roots(self) -> list[Any]:
        """Get every node without a parent."""
        ...

    @abstractmethod
    def has_children(self, key: Any) -> bool:
        """True if any node has *key* as its parent."""
        ...

    @abstractmethod
    def save(self, node: Any) -> None:
        """Persist a new or modified node."""
        ...

    @abstractmethod
    def lock(self, node: Any) -> None:
        """Reload *node* from storage, taking a row lock where supported."""
        ...

    # ------------------------------------------------------------------
    # Path writes
    # ------------------------------------------------------------------

    @abstractmethod
    def set_first_path(
        self, key: Any, path: str, explicit_path: str | None = None
    ) -> int:
        """Set the path of the row with *key* only while its path is NULL."""
        ...

    @abstractmethod
    def rewrite_prefix(self, old_prefix: str, new_prefix: str) -> int:
        """Rewrite the row whose path is *old_prefix* and every row below it.

        Only the leading *old_prefix* is replaced; the suffix is kept.
        """
        ...

    def rewrite_prefix_with_explicit(
        self,
        old_prefix: str,
        new_prefix: str,
        old_explicit: str | None,
        new_explicit: str,
    ) -> int:
        """Like rewrite_prefix, also rewriting the explicit path column."""
        raise NotYetImplementedError("rewrite_prefix_with_explicit")

    # ------------------------------------------------------------------
    # Bulk initialization
    # ------------------------------------------------------------------

    @abstractmethod
    def clear_paths(self) -> int:
        """Set every path (and explicit path) to NULL."""
        ...

    @abstractmethod
    def assign_root_paths(self) -> int:
        """Set ``separator + key`` as the path of every root row.

        Raises:
            InvalidNodeKeyError: If a root key contains the separator.
        """
        ...

    @abstractmethod
    def resolve_next_level(self) -> int:
        """Give a path to every pathless row whose parent already has one."""
        ...

    @abstractmethod
    def has_unresolved(self) -> bool:
        """True if any row still has a NULL path."""
        ...

    # ------------------------------------------------------------------
    # Prefix reads
    # ------------------------------------------------------------------

    @abstractmethod
    def find_by_path_prefixes(self, prefixes: Sequence[str]) -> list[Any]:
        """Rows whose path starts with ``prefix + separator`` for any prefix."""
        ...

    @abstractmethod
    def find_prefixes_of(self, paths: Sequence[str]) -> list[Any]:
        """Rows whose ``path + separator`` starts any of *paths*.

        May over-match; callers re-check candidates exactly.
        """
        ...

    @abstractmethod
    def deepest_depth(self) -> int | None:
        """Largest depth among computed paths, None if there is none."""
        ...
