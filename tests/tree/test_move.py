"""Tests for TodoEngine.move_todo: reorder and reparent with depth limits."""

import pytest

from nestlist.errors import DepthExceededError, EngineError, InvalidMoveError, NotFoundError
from nestlist.tree.engine import TodoEngine
from nestlist.tree.forest import TodoForest, build_tree, flatten_tree
from tests.fixtures import make_chain, make_snapshot, make_todo, sibling_order


def _roots(*ids: str):
    return [make_todo(i, position=p) for p, i in enumerate(ids)]


def _assert_tree_invariants(snapshot, max_depth: int):
    """Depth bound, acyclicity and build/flatten round trip."""
    forest = TodoForest(snapshot.todos)
    for todo in snapshot.todos:
        assert forest.depth(todo.id) + forest.subtree_height(todo.id) <= max_depth
        assert not forest.is_descendant(todo.id, todo.id)
        assert todo.id not in forest.ancestors(todo.id)
    flat = flatten_tree(build_tree(snapshot.todos))
    assert {(u.id, u.parent_id, u.position) for u in flat} == {
        (t.id, t.parent_id, t.position) for t in snapshot.todos
    }


def _assert_contiguous(snapshot):
    groups: dict = {}
    for todo in snapshot.todos:
        groups.setdefault(todo.parent_id, []).append(todo.position)
    for positions in groups.values():
        assert sorted(positions) == list(range(len(positions)))


class TestReorderWithinParent:
    def test_move_last_to_front(self):
        """[a, b, c] moving c to index 0 gives [c, a, b]."""
        snapshot = make_snapshot(_roots("a", "b", "c"))
        result = TodoEngine().move_todo(snapshot, "c", None, 0)
        assert sibling_order(result.snapshot, None) == ["c", "a", "b"]
        assert [(u.id, u.position) for u in result.updated_positions] == [
            ("c", 0), ("a", 1), ("b", 2),
        ]

    def test_index_is_final_position(self):
        """Moving a down to index 2 leaves it at index 2."""
        snapshot = make_snapshot(_roots("a", "b", "c"))
        result = TodoEngine().move_todo(snapshot, "a", None, 2)
        assert sibling_order(result.snapshot, None) == ["b", "c", "a"]

    def test_move_to_current_slot_is_noop(self):
        """Moving a todo to where it already is changes nothing."""
        snapshot = make_snapshot(_roots("a", "b", "c"))
        result = TodoEngine().move_todo(snapshot, "b", None, 1)
        assert result.snapshot.todos == snapshot.todos

    def test_index_clamped_high(self):
        """An index past the end appends."""
        snapshot = make_snapshot(_roots("a", "b", "c"))
        result = TodoEngine().move_todo(snapshot, "a", None, 99)
        assert sibling_order(result.snapshot, None) == ["b", "c", "a"]

    def test_index_clamped_low(self):
        """A negative index inserts at the front."""
        snapshot = make_snapshot(_roots("a", "b", "c"))
        result = TodoEngine().move_todo(snapshot, "c", None, -5)
        assert sibling_order(result.snapshot, None) == ["c", "a", "b"]

    def test_input_snapshot_unchanged(self):
        """The caller's snapshot is never mutated."""
        snapshot = make_snapshot(_roots("a", "b", "c"))
        before = snapshot.model_copy(deep=True)
        TodoEngine().move_todo(snapshot, "c", None, 0)
        assert snapshot == before


class TestReparent:
    def test_cross_parent_move_renumbers_both_groups(self):
        """Source and target groups both end up contiguous."""
        records = [
            make_todo("p1", position=0),
            make_todo("p2", position=1),
            make_todo("x", "p1", 0),
            make_todo("y", "p1", 1),
            make_todo("z", "p1", 2),
            make_todo("u", "p2", 0),
        ]
        result = TodoEngine().move_todo(make_snapshot(records), "y", "p2", 1)

        assert sibling_order(result.snapshot, "p1") == ["x", "z"]
        assert sibling_order(result.snapshot, "p2") == ["u", "y"]
        assert result.snapshot.get_todo("y").parent_id == "p2"
        assert [(u.id, u.parent_id, u.position) for u in result.updated_positions] == [
            ("x", "p1", 0), ("z", "p1", 1), ("u", "p2", 0), ("y", "p2", 1),
        ]
        _assert_contiguous(result.snapshot)

    def test_move_to_root(self):
        """A nested todo can be promoted to the root level."""
        records = [make_todo("a"), make_todo("b", "a", 0), make_todo("c", position=1)]
        result = TodoEngine().move_todo(make_snapshot(records), "b", None, 1)
        assert sibling_order(result.snapshot, None) == ["a", "b", "c"]
        assert sibling_order(result.snapshot, "a") == []

    def test_subtree_moves_with_its_root(self):
        """Descendants keep their parent links after a move."""
        records = [make_todo("a"), make_todo("b", position=1), make_todo("b1", "b", 0)]
        result = TodoEngine().move_todo(make_snapshot(records), "b", "a", 0)
        assert result.snapshot.get_todo("b1").parent_id == "b"
        assert result.snapshot.get_todo("b").parent_id == "a"

    def test_move_into_empty_parent(self):
        records = _roots("a", "b")
        result = TodoEngine().move_todo(make_snapshot(records), "b", "a", 5)
        assert sibling_order(result.snapshot, "a") == ["b"]
        assert result.snapshot.get_todo("b").position == 0


class TestDepthLimit:
    def test_subtree_that_would_exceed_max_depth(self):
        """A height-1 subtree under a depth-2 parent needs depth 4."""
        records = [
            *make_chain("r", "p", "q"),
            make_todo("s", position=1),
            make_todo("t", "s", 0),
            make_todo("x", "t", 0),
            make_todo("y", "x", 0),
        ]
        with pytest.raises(DepthExceededError) as exc_info:
            TodoEngine().move_todo(make_snapshot(records), "x", "q", 0)
        assert exc_info.value.required_depth == 4
        assert exc_info.value.max_depth == 3

    def test_leaf_to_deepest_allowed_level(self):
        """A leaf may land exactly at max depth."""
        records = [*make_chain("r", "p", "q"), make_todo("leaf", position=1)]
        result = TodoEngine().move_todo(make_snapshot(records), "leaf", "q", 0)
        assert result.snapshot.get_todo("leaf").parent_id == "q"

    def test_custom_max_depth(self):
        """The limit is configurable per engine."""
        records = [*make_chain("a", "b"), make_todo("c", position=1)]
        with pytest.raises(DepthExceededError):
            TodoEngine(max_depth=1).move_todo(make_snapshot(records), "c", "b", 0)


class TestPreconditions:
    def test_unknown_todo(self):
        with pytest.raises(NotFoundError) as exc_info:
            TodoEngine().move_todo(make_snapshot(_roots("a")), "missing", None, 0)
        assert exc_info.value.entity_id == "missing"

    def test_unknown_target_parent(self):
        with pytest.raises(NotFoundError) as exc_info:
            TodoEngine().move_todo(make_snapshot(_roots("a")), "a", "missing", 0)
        assert exc_info.value.entity_id == "missing"

    def test_own_parent(self):
        with pytest.raises(InvalidMoveError):
            TodoEngine().move_todo(make_snapshot(_roots("a")), "a", "a", 0)

    def test_into_own_descendant(self):
        """Cycle check wins over the depth check."""
        snapshot = make_snapshot(make_chain("a", "b", "c", "d"))
        with pytest.raises(InvalidMoveError):
            TodoEngine().move_todo(snapshot, "a", "d", 0)

    def test_failed_move_changes_nothing(self):
        snapshot = make_snapshot(make_chain("a", "b"))
        before = snapshot.model_copy(deep=True)
        with pytest.raises(InvalidMoveError):
            TodoEngine().move_todo(snapshot, "a", "b", 0)
        assert snapshot == before


class TestInvariants:
    def test_move_sequence_keeps_invariants(self):
        """Mixed moves keep positions contiguous, depth bounded and the tree acyclic."""
        engine = TodoEngine()
        snapshot = make_snapshot([
            make_todo("a", position=0),
            make_todo("b", position=1),
            make_todo("c", position=2),
            make_todo("a1", "a", 0),
            make_todo("a2", "a", 1),
            make_todo("b1", "b", 0),
        ])
        moves = [
            ("a1", "b", 0),
            ("c", "a", 0),
            ("b1", None, 0),
            ("a2", "b1", 3),
            ("a", None, 10),
            ("b", "c", 0),
        ]
        for todo_id, parent_id, index in moves:
            snapshot = engine.move_todo(snapshot, todo_id, parent_id, index).snapshot
            _assert_contiguous(snapshot)
            _assert_tree_invariants(snapshot, engine.max_depth)
        assert len(snapshot.todos) == 6

    def test_rejected_moves_leave_a_valid_tree(self):
        """Moves that would break depth or acyclicity are refused; the rest apply."""
        engine = TodoEngine()
        snapshot = make_snapshot([
            *make_chain("a", "b", "c", "d"),
            make_todo("e", position=1),
            make_todo("e1", "e", 0),
        ])
        attempts = [
            ("e", "d", 0),
            ("a", "c", 0),
            ("e", "c", 0),
            ("e1", "c", 0),
            ("e", "b", 5),
            ("b", None, 0),
        ]
        rejected = 0
        for todo_id, parent_id, index in attempts:
            try:
                snapshot = engine.move_todo(snapshot, todo_id, parent_id, index).snapshot
            except EngineError:
                rejected += 1
            _assert_contiguous(snapshot)
            _assert_tree_invariants(snapshot, engine.max_depth)
        assert rejected == 3
        assert snapshot.get_todo("e1").parent_id == "c"
        assert snapshot.get_todo("e").parent_id == "b"
