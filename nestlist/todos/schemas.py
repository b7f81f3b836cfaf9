"""Request and response schemas for todo, pinned-list and tag endpoints."""

from pydantic import BaseModel, Field

from nestlist.models import PinnedListView, TagRecord, TodoNode

# -- Requests --


class CreateTodoRequest(BaseModel):
    title: str
    parent_id: str | None = None


class PatchTodoRequest(BaseModel):
    """Fields to update on a todo. Only fields present in the request body are changed."""

    title: str | None = None
    completed: bool | None = None


class MoveTodoRequest(BaseModel):
    target_parent_id: str | None = None
    target_index: int = 0


class SetPinnedRequest(BaseModel):
    pinned: bool


class AttachTagRequest(BaseModel):
    tag_id: str


class TagRequest(BaseModel):
    name: str


class PinnedListRequest(BaseModel):
    title: str


class MovePinnedTodoRequest(BaseModel):
    todo_id: str
    target_list_id: str
    target_index: int = 0


# -- Responses --


class StateResponse(BaseModel):
    todos: list[TodoNode]
    pinned_lists: list[PinnedListView]
    tags: list[TagRecord] = Field(default_factory=list)
