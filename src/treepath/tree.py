"""PathTree -- the public entry point for treepath.

Ties together storage, path computation, cycle checks and tree queries
for one node type. Users interact with ``PathTree.open()``,
``tree.create()``, ``tree.set_as_child_of()``, ``tree.descendants()``, etc.

Every mutating call runs inside a savepoint and commits on success, so
the multi-row path rewrites it issues are applied atomically. Not
thread-safe: each thread should open its own ``PathTree``.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from treepath.engine.computer import PathComputer
from treepath.engine.guard import CycleGuard
from treepath.engine.query import TreeQueryEngine
from treepath.exceptions import NodeNotFoundError
from treepath.models.config import TreeConfig
from treepath.storage.engine import create_session_factory, create_tree_engine, init_db
from treepath.storage.schema import TreeNodeRow
from treepath.storage.sqlite import SqlitePathStore

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from sqlalchemy import Engine
    from sqlalchemy.orm import Session

    from treepath.models.node import NodeInfo


class PathTree:
    """A materialized-path tree stored in one table."""

    def __init__(
        self,
        *,
        engine: Engine | None,
        session: Session,
        model: type,
        config: TreeConfig,
        owns_session: bool = True,
    ) -> None:
        self._engine = engine
        self._session = session
        self._owns_session = owns_session
        self._model = model
        self._config = config
        self._store = SqlitePathStore(session, model, config)
        self._computer = PathComputer(self._store, config)
        self._guard = CycleGuard(self._store, config, self._computer)
        self._query = TreeQueryEngine(self._store, config)
        self._closed = False

    @classmethod
    def open(
        cls,
        path: str = ":memory:",
        *,
        url: str | None = None,
        model: type = TreeNodeRow,
        config: TreeConfig | None = None,
    ) -> PathTree:
        """Open (or create) a tree database.

        Args:
            path: SQLite path.  ``":memory:"`` for in-memory (default).
            url: Full SQLAlchemy URL; overrides *path* when given.
            model: Mapped node class.  ``TreeNodeRow`` by default.
            config: Column names and separator for *model*.  Defaults
                match ``TreeNodeRow``.

        Returns:
            A ready-to-use ``PathTree``.
        """
        engine = create_tree_engine(path, url=url)
        init_db(engine)
        session = create_session_factory(engine)()
        return cls(engine=engine, session=session, model=model, config=config or TreeConfig())

    @classmethod
    def from_session(
        cls,
        session: Session,
        *,
        model: type = TreeNodeRow,
        config: TreeConfig | None = None,
    ) -> PathTree:
        """Create a ``PathTree`` over an existing session.

        The caller owns the session and its engine; ``close()`` closes
        neither.
        """
        return cls(
            engine=None,
            session=session,
            model=model,
            config=config or TreeConfig(),
            owns_session=False,
        )

    # ------------------------------------------------------------------
    # Public properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> TreeConfig:
        return self._config

    @property
    def session(self) -> Session:
        return self._session

    @property
    def store(self) -> SqlitePathStore:
        return self._store

    @property
    def computer(self) -> PathComputer:
        return self._computer

    @property
    def query(self) -> TreeQueryEngine:
        return self._query

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, key: Any) -> Any:
        """Get a node by key.

        Raises:
            NodeNotFoundError: If no node has this key.
        """
        node = self._store.get(key)
        if node is None:
            raise NodeNotFoundError(key)
        return node

    def roots(self) -> list[Any]:
        return self._store.get_roots()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        """Savepoint around one top-level mutation, committed on success."""
        nested = self._session.begin_nested()
        try:
            yield
        except Exception:
            nested.rollback()
            raise
        nested.commit()
        self._session.commit()

    def create(self, key: Any = None, *, parent: Any = None, **attrs: Any) -> Any:
        """Insert a node under *parent* (a node, a key or None) and compute its path."""
        cfg = self._config
        parent_key = cfg.key_of(parent) if isinstance(parent, self._model) else parent
        values = {cfg.parent_column: parent_key, **attrs}
        if key is not None:
            values[cfg.key_column] = key
        node = self._model(**values)
        with self._transaction():
            self._store.save(node)
            self._computer.refresh_path(node)
        return node

    def refresh_path(self, node: Any) -> int:
        """Recompute *node*'s path and propagate it to its subtree."""
        with self._transaction():
            self._store.lock(node)
            return self._computer.refresh_path(node)

    def compute_all_paths(self) -> int:
        """Rebuild every path of the table from the parent references."""
        with self._transaction():
            return self._computer.compute_all_paths()

    def set_as_child_of(self, node: Any, parent: Any | None) -> int:
        with self._transaction():
            return self._guard.set_as_child_of(node, parent)

    def set_as_parent_of(self, node: Any, child: Any) -> int:
        with self._transaction():
            return self._guard.set_as_parent_of(node, child)

    def set_as_root(self, node: Any) -> int:
        with self._transaction():
            return self._guard.set_as_root(node)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_root(self, node: Any) -> bool:
        return self._query.is_root(node)

    def is_leaf(self, node: Any) -> bool:
        return self._query.is_leaf(node)

    def is_sibling_of(self, a: Any, b: Any) -> bool:
        return self._query.is_sibling_of(a, b)

    def is_parent_of(self, a: Any, b: Any) -> bool:
        return self._query.is_parent_of(a, b)

    def is_child_of(self, a: Any, b: Any) -> bool:
        return self._query.is_child_of(a, b)

    def is_ancestor_of(self, a: Any, b: Any) -> bool:
        return self._query.is_ancestor_of(a, b)

    def is_descendant_of(self, a: Any, b: Any) -> bool:
        return self._query.is_descendant_of(a, b)

    def parent(self, node: Any) -> Any | None:
        return self._query.parent(node)

    def children(self, node: Any) -> list[Any]:
        return self._query.children(node)

    def siblings(self, node: Any, *, include_self: bool = False) -> list[Any]:
        return self._query.siblings(node, include_self=include_self)

    def descendants(self, node: Any) -> list[Any]:
        return self._query.descendants(node)

    def ancestors(self, node: Any) -> list[Any]:
        return self._query.ancestors(node)

    def fetch_descendants_batch(self, nodes: Sequence[Any]) -> dict[Any, list[Any]]:
        return self._query.fetch_descendants_batch(nodes)

    def fetch_ancestors_batch(self, nodes: Sequence[Any]) -> dict[Any, list[Any]]:
        return self._query.fetch_ancestors_batch(nodes)

    def depth(self, node: Any) -> int | None:
        return self._query.depth(node)

    def deepest_depth(self) -> int | None:
        return self._query.deepest_depth()

    def explicit_path(self, node: Any) -> str | None:
        return self._query.explicit_path(node)

    def info(self, node: Any) -> NodeInfo:
        return self._query.info(node)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the session and dispose the engine (when owned)."""
        if self._closed:
            return
        self._closed = True
        if self._owns_session:
            self._session.close()
        if self._engine is not None:
            self._engine.dispose()

    def __enter__(self) -> PathTree:
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = ", closed=True" if self._closed else ""
        return f"PathTree(model={self._model.__name__}{state})"
