"""Property tests over random forests.

Covers:
- Bulk initialization yields parent path + separator + key everywhere
- Reparenting keeps that invariant, or is rejected without writes
- Filter reduction covers every requested path
- Batch fetches agree with per-node prefix tests
"""

from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st
from sqlalchemy import select

from tests.strategies import expected_paths, forests, path_batches
from treepath import CircularTreeRelationError, PathTree
from treepath.engine.paths import is_prefix_path, reduce_to_longest, reduce_to_shortest
from treepath.storage.schema import TreeNodeRow


def _open_forest(rows):
    tree = PathTree.open()
    for key, parent in rows:
        tree.session.add(TreeNodeRow(id=key, parent_id=parent, name=f"n{key}"))
    tree.session.commit()
    return tree


def _stored_paths(tree):
    tree.session.expire_all()
    rows = tree.session.execute(select(TreeNodeRow)).scalars().all()
    return {row.id: (row.parent_id, row.path) for row in rows}


def _assert_consistent(stored):
    for key, (parent, path) in stored.items():
        prefix = stored[parent][1] if parent is not None else ""
        assert path == f"{prefix}/{key}"


class TestComputeAllProperties:
    @given(rows=forests())
    @settings(max_examples=30, deadline=None)
    def test_paths_follow_parents(self, rows):
        with _open_forest(rows) as tree:
            assert tree.compute_all_paths() == len(rows)
            stored = _stored_paths(tree)
            assert {key: path for key, (_, path) in stored.items()} == expected_paths(rows)
            _assert_consistent(stored)


class TestReparentProperties:
    @given(rows=forests(max_size=15), data=st.data())
    @settings(max_examples=30, deadline=None)
    def test_move_keeps_paths_consistent(self, rows, data):
        keys = [key for key, _ in rows]
        moved_key = data.draw(st.sampled_from(keys), label="moved")
        target_key = data.draw(st.sampled_from(keys), label="target")
        paths = expected_paths(rows)
        moved_path = paths[moved_key]
        closes_cycle = (
            target_key == moved_key
            or is_prefix_path(moved_path, paths[target_key], "/")
        )

        with _open_forest(rows) as tree:
            tree.compute_all_paths()
            before = _stored_paths(tree)
            moved = tree.get(moved_key)
            target = tree.get(target_key)

            if closes_cycle:
                try:
                    tree.set_as_child_of(moved, target)
                except CircularTreeRelationError:
                    pass
                else:
                    raise AssertionError("cycle was not rejected")
                assert _stored_paths(tree) == before
                return

            subtree = [
                key for key, path in paths.items()
                if path == moved_path or is_prefix_path(moved_path, path, "/")
            ]
            affected = tree.set_as_child_of(moved, target)
            after = _stored_paths(tree)
            _assert_consistent(after)
            assert after[moved_key][0] == target_key
            if before[moved_key][1] == after[moved_key][1]:
                assert affected == 0
            else:
                assert affected == len(subtree)


class TestReductionProperties:
    @given(batch=path_batches)
    def test_shortest_covers_every_path(self, batch):
        kept = reduce_to_shortest(batch, "/")
        assert kept == sorted(set(kept))
        for path in batch:
            assert any(k == path or is_prefix_path(k, path, "/") for k in kept)
        for a in kept:
            assert not any(is_prefix_path(b, a, "/") for b in kept)

    @given(batch=path_batches)
    def test_longest_extends_every_path(self, batch):
        kept = reduce_to_longest(batch, "/")
        assert kept == sorted(set(kept), reverse=True)
        for path in batch:
            assert any(k == path or is_prefix_path(path, k, "/") for k in kept)
        for a in kept:
            assert not any(is_prefix_path(a, b, "/") for b in kept)


class TestBatchProperties:
    @given(rows=forests(max_size=15), data=st.data())
    @settings(max_examples=25, deadline=None)
    def test_batches_match_prefix_tests(self, rows, data):
        keys = [key for key, _ in rows]
        requested = data.draw(
            st.lists(st.sampled_from(keys), min_size=1, max_size=len(keys), unique=True),
            label="requested",
        )

        with _open_forest(rows) as tree:
            tree.compute_all_paths()
            nodes = {key: tree.get(key) for key in keys}
            requesters = [nodes[key] for key in requested]

            descendants = tree.fetch_descendants_batch(requesters)
            ancestors = tree.fetch_ancestors_batch(requesters)

            for key in requested:
                path = nodes[key].path
                below = sorted(
                    (n for n in nodes.values() if is_prefix_path(path, n.path, "/")),
                    key=lambda n: n.path,
                )
                above = sorted(
                    (n for n in nodes.values() if is_prefix_path(n.path, path, "/")),
                    key=lambda n: n.path,
                )
                assert descendants[key] == below
                assert ancestors[key] == above
