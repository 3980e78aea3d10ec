"""Node domain model for treepath.

NodeInfo is the display-facing snapshot of a tree node.
Not an ORM model -- used for data transfer only.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel


class NodeInfo(BaseModel):
    """Snapshot of one node's position in its tree."""

    key: Any
    parent_key: Any = None
    path: Optional[str] = None
    explicit_path: Optional[str] = None
    label: Optional[str] = None
    depth: Optional[int] = None

    @property
    def is_root(self) -> bool:
        return self.parent_key is None

    def __str__(self) -> str:
        label = f" {self.label}" if self.label else ""
        return f"{self.path or '<no path>'}{label}"
