"""Tests for tag definitions and attaching tags to todos."""

import pytest

from nestlist.errors import InvalidOperationError, NotFoundError
from nestlist.models import TagRecord
from nestlist.tags.engine import TagEngine
from tests.fixtures import make_snapshot, make_todo


def _tagged():
    return make_snapshot(
        todos=[make_todo("a", tag_ids=["t1"]), make_todo("b", position=1, tag_ids=["t1", "t2"])],
        tags=[TagRecord(id="t1", name="home"), TagRecord(id="t2", name="work")],
    )


class TestTagDefinitions:
    def test_add(self):
        snapshot, tag = TagEngine().add_tag(make_snapshot(), "  urgent ")
        assert tag.name == "urgent"
        assert snapshot.tags == [tag]

    def test_duplicate_name_case_insensitive(self):
        with pytest.raises(InvalidOperationError):
            TagEngine().add_tag(_tagged(), "HOME")

    def test_blank_name(self):
        with pytest.raises(InvalidOperationError):
            TagEngine().add_tag(make_snapshot(), "")

    def test_rename(self):
        snapshot = TagEngine().rename_tag(_tagged(), "t1", "house")
        assert snapshot.get_tag("t1").name == "house"

    def test_rename_to_own_name_with_new_case(self):
        """A tag does not collide with itself."""
        snapshot = TagEngine().rename_tag(_tagged(), "t1", "Home")
        assert snapshot.get_tag("t1").name == "Home"

    def test_rename_to_other_tags_name(self):
        with pytest.raises(InvalidOperationError):
            TagEngine().rename_tag(_tagged(), "t1", "Work")

    def test_delete_detaches_everywhere(self):
        snapshot = TagEngine().delete_tag(_tagged(), "t1")
        assert [t.id for t in snapshot.tags] == ["t2"]
        assert snapshot.get_todo("a").tag_ids == []
        assert snapshot.get_todo("b").tag_ids == ["t2"]

    def test_delete_unknown(self):
        with pytest.raises(NotFoundError):
            TagEngine().delete_tag(_tagged(), "missing")


class TestAttachDetach:
    def test_attach(self):
        snapshot = TagEngine().attach_tag(_tagged(), "a", "t2")
        assert snapshot.get_todo("a").tag_ids == ["t1", "t2"]

    def test_attach_is_idempotent(self):
        snapshot = _tagged()
        assert TagEngine().attach_tag(snapshot, "a", "t1") is snapshot

    def test_detach(self):
        snapshot = TagEngine().detach_tag(_tagged(), "b", "t1")
        assert snapshot.get_todo("b").tag_ids == ["t2"]

    def test_detach_missing_link_is_noop(self):
        snapshot = _tagged()
        assert TagEngine().detach_tag(snapshot, "a", "t2") is snapshot

    def test_unknown_todo_or_tag(self):
        with pytest.raises(NotFoundError):
            TagEngine().attach_tag(_tagged(), "missing", "t1")
        with pytest.raises(NotFoundError):
            TagEngine().attach_tag(_tagged(), "a", "missing")
