"""Treepath exception hierarchy.

All treepath-specific exceptions inherit from TreePathError.
"""

from __future__ import annotations

import enum


class TreePathError(Exception):
    """Base exception for all treepath errors."""


class CycleKind(str, enum.Enum):
    """What detected the circular relation."""

    REPARENT = "reparent"
    NON_CONVERGENT = "non_convergent"

    def __str__(self) -> str:
        return self.value


class CircularTreeRelationError(TreePathError):
    """Raised when a parent assignment would close a cycle.

    Carries the offending node type and key so callers can match on
    ``kind`` instead of on a class hierarchy. ``node_key`` is None when
    the error concerns a whole table (bulk initialization).
    """

    def __init__(
        self,
        node_type: str,
        node_key: object = None,
        *,
        kind: CycleKind = CycleKind.REPARENT,
    ) -> None:
        self.node_type = node_type
        self.node_key = node_key
        self.kind = kind
        suffix = "" if node_key is None else f" : {node_key}"
        super().__init__(
            f"Circular tree relation detected in [{node_type}] model{suffix}"
        )


class NodeNotFoundError(TreePathError):
    """Raised when a node key lookup fails."""

    def __init__(self, key: object) -> None:
        self.key = key
        super().__init__(f"Node not found: {key}")


class InvalidNodeKeyError(TreePathError):
    """Raised when a key cannot be embedded in a path.

    A key whose string form contains the path separator would make
    prefix tests ambiguous.
    """

    def __init__(self, key: object, separator: str) -> None:
        self.key = key
        self.separator = separator
        super().__init__(
            f"Node key {key!r} contains the path separator {separator!r}"
        )


class NotYetImplementedError(TreePathError):
    """Raised when a store does not support the requested operation."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Operation not implemented by this store: {operation}")


class SchemaVersionError(TreePathError):
    """Raised when a database was created with another table layout."""

    def __init__(self, found: str, expected: str) -> None:
        self.found = found
        self.expected = expected
        super().__init__(
            f"Database schema version {found} does not match {expected}"
        )
