"""Tests for the PathTree facade.

Covers:
- open / from_session / close lifecycle
- create() computing paths, with parents given as nodes or keys
- Transactional mutations: rejected or failing operations leave the
  database unchanged
- Query pass-throughs
"""

from __future__ import annotations

import pytest
from sqlalchemy import update

from tests.helpers import CATEGORY_CONFIG, SIX_PATHS, SIX_ROWS, CategoryRow
from treepath import (
    CircularTreeRelationError,
    InvalidNodeKeyError,
    NodeNotFoundError,
    PathTree,
    TreeConfig,
)
from treepath.storage.engine import create_session_factory, create_tree_engine, init_db
from treepath.storage.schema import TreeNodeRow


@pytest.fixture
def tree():
    t = PathTree.open()
    yield t
    t.close()


@pytest.fixture
def six(tree):
    return {key: tree.create(key, parent=parent, name=f"n{key}") for key, parent in SIX_ROWS}


def _paths(tree):
    tree.session.expire_all()
    return {key: tree.get(key).path for key in SIX_PATHS}


class TestLifecycle:
    def test_open_in_memory(self, tree):
        assert tree.config == TreeConfig()
        assert tree.roots() == []
        assert repr(tree) == "PathTree(model=TreeNodeRow)"

    def test_context_manager(self):
        with PathTree.open() as tree:
            tree.create(name="only")
        assert repr(tree) == "PathTree(model=TreeNodeRow, closed=True)"

    def test_close_twice(self, tree):
        tree.close()
        tree.close()

    def test_from_session_leaves_session_open(self, monkeypatch):
        engine = create_tree_engine(":memory:")
        init_db(engine)
        session = create_session_factory(engine)()
        closed = []
        monkeypatch.setattr(session, "close", lambda: closed.append(True))

        tree = PathTree.from_session(session)
        root = tree.create(name="root")
        tree.close()

        assert closed == []
        assert root.path == f"/{root.id}"
        engine.dispose()

    def test_file_database_persists(self, tmp_path):
        db = str(tmp_path / "tree.db")
        with PathTree.open(db) as tree:
            tree.create(1, name="root")
            tree.create(2, parent=1, name="child")

        with PathTree.open(db) as tree:
            assert tree.get(2).path == "/1/2"


class TestCreate:
    def test_autoincrement_root(self, tree):
        root = tree.create(name="root")
        assert root.path == f"/{root.id}"
        assert tree.is_root(root)

    def test_parent_as_node_or_key(self, tree):
        root = tree.create(1, name="root")
        by_node = tree.create(2, parent=root, name="a")
        by_key = tree.create(3, parent=2, name="b")
        assert by_node.path == "/1/2"
        assert by_key.path == "/1/2/3"

    def test_six_rows(self, tree, six):
        assert {key: node.path for key, node in six.items()} == SIX_PATHS

    def test_invalid_key_rolls_back(self):
        with PathTree.open(model=CategoryRow, config=CATEGORY_CONFIG) as tree:
            with pytest.raises(InvalidNodeKeyError):
                tree.create("a.b", label="bad")
            assert tree.store.get("a.b") is None

            good = tree.create("ab", label="Good")
            assert good.lineage == ".ab"
            assert good.label_path == ".Good"


class TestMutations:
    def test_get_missing(self, tree):
        with pytest.raises(NodeNotFoundError) as exc_info:
            tree.get(999)
        assert exc_info.value.key == 999

    def test_move(self, tree, six):
        assert tree.set_as_child_of(six[2], six[3]) == 3
        paths = _paths(tree)
        assert paths[2] == "/1/3/2"
        assert paths[5] == "/1/3/2/5"

    def test_rejected_move_leaves_database_unchanged(self, tree, six):
        with pytest.raises(CircularTreeRelationError):
            tree.set_as_child_of(six[1], six[4])
        assert tree.get(1).parent_id is None
        assert _paths(tree) == SIX_PATHS

    def test_set_as_parent_of(self, tree, six):
        assert tree.set_as_parent_of(six[5], six[6]) == 1
        assert _paths(tree)[6] == "/1/2/5/6"

    def test_set_as_root(self, tree, six):
        assert tree.set_as_root(six[2]) == 3
        assert tree.is_root(six[2])
        assert _paths(tree)[4] == "/2/4"
        assert [node.id for node in tree.roots()] == [1, 2]

    def test_refresh_path_fills_missing_path(self, tree, six):
        tree.session.execute(
            update(TreeNodeRow).where(TreeNodeRow.id == 2).values(path=None)
        )
        assert tree.refresh_path(six[2]) == 1
        assert _paths(tree) == SIX_PATHS

    def test_compute_all_paths(self, tree, six):
        tree.session.execute(update(TreeNodeRow).values(path="/stale"))
        assert tree.compute_all_paths() == 6
        assert _paths(tree) == SIX_PATHS

    def test_failed_rebuild_keeps_previous_paths(self, tree):
        for key, parent in [(1, None), (2, 1), (3, 2), (7, None), (8, 7)]:
            tree.create(key, parent=parent, name=f"n{key}")
        tree.session.execute(
            update(TreeNodeRow).where(TreeNodeRow.id == 7).values(parent_id=8)
        )
        tree.session.commit()

        with pytest.raises(CircularTreeRelationError):
            tree.compute_all_paths()

        tree.session.expire_all()
        assert {key: tree.get(key).path for key in (1, 2, 3, 7, 8)} == {
            1: "/1",
            2: "/1/2",
            3: "/1/2/3",
            7: "/7",
            8: "/7/8",
        }

    def test_rebuild_with_invalid_root_key_keeps_previous_paths(self):
        with PathTree.open(model=CategoryRow, config=CATEGORY_CONFIG) as tree:
            tree.create("a", label="A")
            tree.create("b", parent="a", label="B")
            tree.session.add(CategoryRow(code="x.y", label="bad"))
            tree.session.commit()

            with pytest.raises(InvalidNodeKeyError):
                tree.compute_all_paths()

            tree.session.expire_all()
            assert tree.get("b").lineage == ".a.b"
            assert tree.get("b").label_path == ".A.B"
            assert tree.get("x.y").lineage is None


class TestQueries:
    def test_relations(self, tree, six):
        assert [n.id for n in tree.descendants(six[2])] == [4, 5]
        assert [n.id for n in tree.ancestors(six[6])] == [1, 3]
        assert [n.id for n in tree.children(six[1])] == [2, 3]
        assert [n.id for n in tree.siblings(six[4])] == [5]
        assert tree.parent(six[6]) is six[3]

    def test_predicates(self, tree, six):
        assert tree.is_leaf(six[4])
        assert tree.is_sibling_of(six[2], six[3])
        assert tree.is_parent_of(six[3], six[6])
        assert tree.is_child_of(six[6], six[3])
        assert tree.is_ancestor_of(six[1], six[6])
        assert tree.is_descendant_of(six[6], six[1])

    def test_batches(self, tree, six):
        result = tree.fetch_descendants_batch([six[2], six[3]])
        assert {k: [n.id for n in v] for k, v in result.items()} == {2: [4, 5], 3: [6]}
        result = tree.fetch_ancestors_batch([six[4]])
        assert [n.id for n in result[4]] == [1, 2]

    def test_derived_values(self, tree, six):
        assert tree.depth(six[4]) == 2
        assert tree.deepest_depth() == 2
        assert tree.explicit_path(six[6]) == "/n1/n3/n6"
        assert tree.info(six[6]).path == "/1/3/6"
