"""Shared test fixtures for treepath.

Provides in-memory SQLite engine, session, store and engine fixtures.
"""

from __future__ import annotations

import pytest
from sqlalchemy.orm import Session, sessionmaker

from tests.helpers import CATEGORY_CONFIG, SIX_ROWS, CategoryRow, add_rows
from treepath.engine.computer import PathComputer
from treepath.engine.guard import CycleGuard
from treepath.engine.query import TreeQueryEngine
from treepath.models.config import TreeConfig
from treepath.storage.engine import create_tree_engine, init_db
from treepath.storage.schema import TreeNodeRow
from treepath.storage.sqlite import SqlitePathStore


@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables created."""
    eng = create_tree_engine(":memory:")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    """Session with automatic rollback after each test."""
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    sess = SessionLocal()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def config() -> TreeConfig:
    return TreeConfig()


@pytest.fixture
def store(session: Session, config: TreeConfig) -> SqlitePathStore:
    return SqlitePathStore(session, TreeNodeRow, config)


@pytest.fixture
def computer(store: SqlitePathStore, config: TreeConfig) -> PathComputer:
    return PathComputer(store, config)


@pytest.fixture
def guard(store: SqlitePathStore, config: TreeConfig, computer: PathComputer) -> CycleGuard:
    return CycleGuard(store, config, computer)


@pytest.fixture
def query(store: SqlitePathStore, config: TreeConfig) -> TreeQueryEngine:
    return TreeQueryEngine(store, config)


@pytest.fixture
def six_rows(session: Session) -> dict[int, TreeNodeRow]:
    """The six-row sample tree with no paths computed yet."""
    return add_rows(session, SIX_ROWS)


@pytest.fixture
def built(six_rows: dict[int, TreeNodeRow], computer: PathComputer) -> dict[int, TreeNodeRow]:
    """The six-row sample tree with every path computed."""
    computer.compute_all_paths()
    return six_rows


@pytest.fixture
def category_store(session: Session) -> SqlitePathStore:
    # CategoryRow must be imported before init_db creates the tables.
    assert CategoryRow.__tablename__ in TreeNodeRow.metadata.tables
    return SqlitePathStore(session, CategoryRow, CATEGORY_CONFIG)
