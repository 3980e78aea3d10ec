"""Shared test helpers for treepath.

Defines a second node model with string keys and its own column names,
the six-row sample tree, and a row-insertion helper.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, Session, mapped_column

from treepath.models.config import TreeConfig
from treepath.storage.schema import Base, TreeNodeRow


class CategoryRow(Base):
    """String-keyed node type with its own column names."""

    __tablename__ = "test_categories"

    code: Mapped[str] = mapped_column(String(50), primary_key=True)
    parent_code: Mapped[Optional[str]] = mapped_column(
        String(50), ForeignKey("test_categories.code"), nullable=True
    )
    label: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    lineage: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    label_path: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)


CATEGORY_CONFIG = TreeConfig(
    key_column="code",
    parent_column="parent_code",
    path_column="lineage",
    path_separator=".",
    explicit_path_column="label_path",
    property_for_explicit_path="label",
)

# 1 root; 2, 3 children of 1; 4, 5 children of 2; 6 child of 3.
SIX_ROWS = [(1, None), (2, 1), (3, 1), (4, 2), (5, 2), (6, 3)]

SIX_PATHS = {
    1: "/1",
    2: "/1/2",
    3: "/1/3",
    4: "/1/2/4",
    5: "/1/2/5",
    6: "/1/3/6",
}


def add_rows(session: Session, rows: list[tuple[int, int | None]]) -> dict[int, TreeNodeRow]:
    """Insert TreeNodeRow rows (parents first) without computing paths."""
    nodes = {}
    for key, parent in rows:
        node = TreeNodeRow(id=key, parent_id=parent, name=f"n{key}")
        session.add(node)
        nodes[key] = node
    session.flush()
    return nodes
