"""Configuration model for treepath.

TreeConfig describes how one node type stores its tree: which mapped
attributes hold the key, the parent reference and the paths, and which
separator joins path segments. It is passed explicitly to the store and
to every engine, so node types with different settings can coexist.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class TreeConfig(BaseModel):
    """Per-node-type tree configuration."""

    model_config = {"frozen": True}

    key_column: str = "id"
    parent_column: str = "parent_id"
    path_column: str = "path"
    path_separator: str = "/"
    explicit_path_column: Optional[str] = None
    property_for_explicit_path: str = "name"
    max_iterations: int = Field(default=32, ge=1)
    root_depth: Literal[0, 1] = 0

    @field_validator("path_separator")
    @classmethod
    def _separator_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("path_separator must not be empty")
        return v

    @property
    def has_explicit_path_column(self) -> bool:
        return self.explicit_path_column is not None

    # ------------------------------------------------------------------
    # Attribute accessors
    # ------------------------------------------------------------------

    def key_of(self, node: Any) -> Any:
        return getattr(node, self.key_column)

    def parent_key_of(self, node: Any) -> Any:
        return getattr(node, self.parent_column)

    def path_of(self, node: Any) -> str | None:
        return getattr(node, self.path_column)

    def explicit_path_of(self, node: Any) -> str | None:
        if self.explicit_path_column is None:
            return None
        return getattr(node, self.explicit_path_column)

    def label_of(self, node: Any) -> Any:
        return getattr(node, self.property_for_explicit_path, None)
