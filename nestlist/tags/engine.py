"""Tag engine: named labels attached to todos, used by the search filter."""

from uuid import uuid4

from nestlist.errors import InvalidOperationError, NotFoundError
from nestlist.models import TagRecord, TodoSnapshot


class TagEngine:
    """Tag CRUD and todo attachment. Names are unique case-insensitively."""

    def add_tag(self, snapshot: TodoSnapshot, name: str) -> tuple[TodoSnapshot, TagRecord]:
        name = self._clean_name(snapshot, name)
        record = TagRecord(id=str(uuid4()), name=name)
        return snapshot.model_copy(update={"tags": [*snapshot.tags, record]}), record

    def rename_tag(self, snapshot: TodoSnapshot, tag_id: str, name: str) -> TodoSnapshot:
        if snapshot.get_tag(tag_id) is None:
            raise NotFoundError("Tag", tag_id)
        name = self._clean_name(snapshot, name, exclude_id=tag_id)
        tags = [t.model_copy(update={"name": name}) if t.id == tag_id else t for t in snapshot.tags]
        return snapshot.model_copy(update={"tags": tags})

    def delete_tag(self, snapshot: TodoSnapshot, tag_id: str) -> TodoSnapshot:
        """Delete a tag and detach it from every todo."""
        if snapshot.get_tag(tag_id) is None:
            raise NotFoundError("Tag", tag_id)
        todos = [
            t.model_copy(update={"tag_ids": [i for i in t.tag_ids if i != tag_id]})
            if tag_id in t.tag_ids
            else t
            for t in snapshot.todos
        ]
        tags = [t for t in snapshot.tags if t.id != tag_id]
        return snapshot.model_copy(update={"tags": tags, "todos": todos})

    def attach_tag(self, snapshot: TodoSnapshot, todo_id: str, tag_id: str) -> TodoSnapshot:
        todo = self._require(snapshot, todo_id, tag_id)
        if tag_id in todo.tag_ids:
            return snapshot
        return self._set_tags(snapshot, todo_id, [*todo.tag_ids, tag_id])

    def detach_tag(self, snapshot: TodoSnapshot, todo_id: str, tag_id: str) -> TodoSnapshot:
        todo = self._require(snapshot, todo_id, tag_id)
        if tag_id not in todo.tag_ids:
            return snapshot
        return self._set_tags(snapshot, todo_id, [i for i in todo.tag_ids if i != tag_id])

    @staticmethod
    def _require(snapshot: TodoSnapshot, todo_id: str, tag_id: str):
        todo = snapshot.get_todo(todo_id)
        if todo is None:
            raise NotFoundError("Todo", todo_id)
        if snapshot.get_tag(tag_id) is None:
            raise NotFoundError("Tag", tag_id)
        return todo

    @staticmethod
    def _set_tags(snapshot: TodoSnapshot, todo_id: str, tag_ids: list[str]) -> TodoSnapshot:
        todos = [
            t.model_copy(update={"tag_ids": tag_ids}) if t.id == todo_id else t
            for t in snapshot.todos
        ]
        return snapshot.model_copy(update={"todos": todos})

    @staticmethod
    def _clean_name(snapshot: TodoSnapshot, name: str, exclude_id: str | None = None) -> str:
        cleaned = name.strip()
        if not cleaned:
            raise InvalidOperationError("Tag name must not be empty")
        folded = cleaned.casefold()
        if any(t.name.casefold() == folded and t.id != exclude_id for t in snapshot.tags):
            raise InvalidOperationError(f"Tag already exists: {cleaned}", detail=cleaned)
        return cleaned
