"""treepath: materialized-path trees in a relational table.

Every node stores the chain of its ancestors' keys, so subtree and
ancestor-chain lookups are single prefix filters instead of recursion.
"""

from treepath._version import __version__

# Core entry point
from treepath.tree import PathTree

# Configuration and models
from treepath.models.config import TreeConfig
from treepath.models.node import NodeInfo

# Engines
from treepath.engine.computer import PathComputer, walk_subtree
from treepath.engine.guard import CycleGuard
from treepath.engine.query import TreeQueryEngine

# Storage
from treepath.storage.repositories import PathStore
from treepath.storage.schema import Base, TreeNodeRow
from treepath.storage.sqlite import SqlitePathStore

# Exceptions
from treepath.exceptions import (
    CircularTreeRelationError,
    CycleKind,
    InvalidNodeKeyError,
    NodeNotFoundError,
    NotYetImplementedError,
    SchemaVersionError,
    TreePathError,
)

__all__ = [
    "__version__",
    "PathTree",
    "TreeConfig",
    "NodeInfo",
    "PathComputer",
    "walk_subtree",
    "CycleGuard",
    "TreeQueryEngine",
    "PathStore",
    "Base",
    "TreeNodeRow",
    "SqlitePathStore",
    "CircularTreeRelationError",
    "CycleKind",
    "InvalidNodeKeyError",
    "NodeNotFoundError",
    "NotYetImplementedError",
    "SchemaVersionError",
    "TreePathError",
]
