"""SQLAlchemy ORM schema for treepath.

Defines the default tree table (``tree_nodes``) and the ``_treepath_meta``
key/value table. Any other declarative model can be used with the store
as long as a TreeConfig names its key, parent and path attributes.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all treepath ORM models."""

    pass


class TreeNodeRow(Base):
    """A node of the default tree table."""

    __tablename__ = "tree_nodes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    parent_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("tree_nodes.id"),
        nullable=True,
    )
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    path: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    explicit_path: Mapped[Optional[str]] = mapped_column(String(4096), nullable=True)

    __table_args__ = (
        Index("ix_tree_nodes_parent", "parent_id"),
        Index("ix_tree_nodes_path", "path"),
    )

    def __repr__(self) -> str:
        return f"TreeNodeRow(id={self.id!r}, parent_id={self.parent_id!r}, path={self.path!r})"


class TreeMetaRow(Base):
    """Key-value metadata table (schema version, etc.)."""

    __tablename__ = "_treepath_meta"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(String(255), nullable=False)
