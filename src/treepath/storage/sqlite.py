"""SQLAlchemy implementation of the path store.

All queries use SQLAlchemy 2.0-style statements (select()/update() +
session.execute()) built from portable expressions, so the store runs on
any dialect; SQLite is the default backend. The store takes a Session,
the mapped node class and the TreeConfig naming its attributes.

Bulk writes go straight to the database, bypassing the unit of work.
Pending ORM changes are flushed first, and the path attributes of every
loaded node of the mapped class are expired afterwards so the next
attribute access reloads them.
"""

from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy import Integer, String, and_, func, literal, or_, select, update
from sqlalchemy.orm import Session, aliased

from treepath.engine.paths import join_explicit_path, join_path
from treepath.models.config import TreeConfig
from treepath.storage.repositories import PathStore


class SqlitePathStore(PathStore):
    """Path store over one mapped node class.

    ``config.key_column`` must be the primary key attribute: bulk level
    resolution updates rows by primary key.
    """

    def __init__(
        self,
        session: Session,
        model: type,
        config: TreeConfig | None = None,
    ) -> None:
        self._session = session
        self._model = model
        self._config = config or TreeConfig()
        cfg = self._config
        self._key = getattr(model, cfg.key_column)
        self._parent = getattr(model, cfg.parent_column)
        self._path = getattr(model, cfg.path_column)
        self._explicit = (
            getattr(model, cfg.explicit_path_column)
            if cfg.explicit_path_column is not None
            else None
        )
        self._label = getattr(model, cfg.property_for_explicit_path, None)

    @property
    def config(self) -> TreeConfig:
        return self._config

    @property
    def node_type(self) -> str:
        return self._model.__name__

    @property
    def session(self) -> Session:
        return self._session

    # ------------------------------------------------------------------
    # Point access
    # ------------------------------------------------------------------

    def get(self, key: Any) -> Any | None:
        stmt = select(self._model).where(self._key == key)
        return self._session.execute(stmt).scalar_one_or_none()

    def get_many(self, keys: Sequence[Any]) -> list[Any]:
        if not keys:
            return []
        stmt = select(self._model).where(self._key.in_(list(keys)))
        return list(self._session.execute(stmt).scalars().all())

    def get_children(self, keys: Sequence[Any]) -> list[Any]:
        if not keys:
            return []
        stmt = (
            select(self._model)
            .where(self._parent.in_(list(keys)))
            .order_by(self._path, self._key)
        )
        return list(self._session.execute(stmt).scalars().all())

    def get_roots(self) -> list[Any]:
        stmt = select(self._model).where(self._parent.is_(None)).order_by(self._key)
        return list(self._session.execute(stmt).scalars().all())

    def has_children(self, key: Any) -> bool:
        stmt = select(self._key).where(self._parent == key).limit(1)
        return self._session.execute(stmt).first() is not None

    def save(self, node: Any) -> None:
        self._session.add(node)
        self._session.flush()

    def lock(self, node: Any) -> None:
        """Flush, then reload *node* with SELECT ... FOR UPDATE.

        Dialects without row locks (SQLite) render a plain SELECT; the
        enclosing transaction is the lock scope there.
        """
        self._session.flush()
        self._session.refresh(node, with_for_update=True)

    # ------------------------------------------------------------------
    # Path writes
    # ------------------------------------------------------------------

    def set_first_path(
        self, key: Any, path: str, explicit_path: str | None = None
    ) -> int:
        values: dict[Any, Any] = {self._path: path}
        if self._explicit is not None and explicit_path is not None:
            values[self._explicit] = explicit_path
        stmt = update(self._model).where(
            self._key == key, self._path.is_(None)
        ).values(values)
        return self._bulk(stmt)

    def rewrite_prefix(self, old_prefix: str, new_prefix: str) -> int:
        stmt = update(self._model).where(self._subtree(old_prefix)).values(
            {self._path: self._replace_head(self._path, old_prefix, new_prefix)}
        )
        return self._bulk(stmt)

    def rewrite_prefix_with_explicit(
        self,
        old_prefix: str,
        new_prefix: str,
        old_explicit: str | None,
        new_explicit: str,
    ) -> int:
        if self._explicit is None:
            return super().rewrite_prefix_with_explicit(
                old_prefix, new_prefix, old_explicit, new_explicit
            )
        if old_explicit is None:
            # No explicit prefix to carry over; only the exact row is fixed.
            stmt = update(self._model).where(self._path == old_prefix).values(
                {self._path: new_prefix, self._explicit: new_explicit}
            )
            return self._bulk(stmt)
        stmt = update(self._model).where(self._subtree(old_prefix)).values(
            {
                self._path: self._replace_head(self._path, old_prefix, new_prefix),
                self._explicit: self._replace_head(
                    self._explicit, old_explicit, new_explicit
                ),
            }
        )
        return self._bulk(stmt)

    # ------------------------------------------------------------------
    # Bulk initialization
    # ------------------------------------------------------------------

    def clear_paths(self) -> int:
        values: dict[Any, Any] = {self._path: None}
        if self._explicit is not None:
            values[self._explicit] = None
        return self._bulk(update(self._model).values(values))

    def assign_root_paths(self) -> int:
        """Give every root its path, written back by primary key.

        Keys are rendered in Python so a key containing the separator
        raises InvalidNodeKeyError instead of producing an ambiguous path.
        """
        columns: list[Any] = [self._key]
        if self._with_explicit:
            columns.append(self._label)
        stmt = select(*columns).where(self._parent.is_(None))
        # Roots have no parent path; the label, when selected, is last.
        rows = [(row[0], None, None, row[-1]) for row in self._session.execute(stmt)]
        return self._write_paths(rows)

    def resolve_next_level(self) -> int:
        """One fixpoint step: children of resolved parents get a path.

        Pairs are read with a self-join, then written back in one
        executemany UPDATE by primary key, so each call resolves exactly
        one level.
        """
        cfg = self._config
        parent = aliased(self._model)
        parent_path = getattr(parent, cfg.path_column)
        columns: list[Any] = [self._key, parent_path]
        if self._with_explicit:
            columns += [getattr(parent, cfg.explicit_path_column), self._label]
        stmt = (
            select(*columns)
            .join(parent, getattr(parent, cfg.key_column) == self._parent)
            .where(self._path.is_(None), parent_path.is_not(None))
        )
        return self._write_paths(self._session.execute(stmt).all())

    def has_unresolved(self) -> bool:
        stmt = select(self._key).where(self._path.is_(None)).limit(1)
        return self._session.execute(stmt).first() is not None

    # ------------------------------------------------------------------
    # Prefix reads
    # ------------------------------------------------------------------

    def find_by_path_prefixes(self, prefixes: Sequence[str]) -> list[Any]:
        if not prefixes:
            return []
        sep = self._config.path_separator
        stmt = (
            select(self._model)
            .where(or_(*(self._below(p + sep) for p in prefixes)))
            .order_by(self._path)
        )
        return list(self._session.execute(stmt).scalars().all())

    def find_prefixes_of(self, paths: Sequence[str]) -> list[Any]:
        if not paths:
            return []
        pattern = self._path + literal(self._config.path_separator + "%", String)
        stmt = (
            select(self._model)
            .where(or_(*(literal(p, String).like(pattern) for p in paths)))
            .order_by(self._path)
        )
        return list(self._session.execute(stmt).scalars().all())

    def deepest_depth(self) -> int | None:
        sep = self._config.path_separator
        occurrences = (
            func.length(self._path, type_=Integer)
            - func.length(func.replace(self._path, sep, ""), type_=Integer)
        ) // len(sep)
        value = self._session.execute(select(func.max(occurrences))).scalar()
        if value is None:
            return None
        return int(value) - 1 + self._config.root_depth

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _below(self, prefix: str) -> Any:
        """Rows whose path starts with *prefix*, compared case-sensitively.

        LIKE keeps the path index usable; the substr comparison rules out
        case-insensitive LIKE matches (SQLite, MySQL).
        """
        return and_(
            self._path.startswith(prefix, autoescape=True),
            func.substr(self._path, 1, len(prefix)) == prefix,
        )

    def _subtree(self, path: str) -> Any:
        return or_(
            self._path == path,
            self._below(path + self._config.path_separator),
        )

    @staticmethod
    def _replace_head(column: Any, old_head: str, new_head: str) -> Any:
        return literal(new_head, String) + func.substr(
            column, len(old_head) + 1, type_=String
        )

    @property
    def _with_explicit(self) -> bool:
        return self._explicit is not None and self._label is not None

    def _write_paths(self, rows: Sequence[Any]) -> int:
        """Write paths for (key, parent path[, parent explicit, label]) rows."""
        if not rows:
            return 0
        cfg = self._config
        sep = cfg.path_separator
        params = []
        for row in rows:
            values = {
                cfg.key_column: row[0],
                cfg.path_column: join_path(row[1], row[0], sep),
            }
            if self._with_explicit:
                values[cfg.explicit_path_column] = join_explicit_path(row[2], row[3], sep)
            params.append(values)

        self._session.flush()
        self._session.execute(update(self._model), params)
        self._expire_loaded()
        return len(params)

    def _bulk(self, stmt: Any) -> int:
        self._session.flush()
        result = self._session.execute(
            stmt.execution_options(synchronize_session=False)
        )
        self._expire_loaded()
        return result.rowcount

    def _expire_loaded(self) -> None:
        attrs = [self._config.path_column]
        if self._config.explicit_path_column is not None:
            attrs.append(self._config.explicit_path_column)
        for obj in list(self._session.identity_map.values()):
            if isinstance(obj, self._model):
                self._session.expire(obj, attrs)
