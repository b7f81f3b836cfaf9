"""FastAPI routes for the todo forest: state, CRUD, moves, pinning and tag links."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from nestlist.errors import EngineError, NotFoundError
from nestlist.todos.schemas import (
    AttachTagRequest,
    CreateTodoRequest,
    MoveTodoRequest,
    PatchTodoRequest,
    SetPinnedRequest,
    StateResponse,
)
from nestlist.todos.service import TodoService

router = APIRouter(prefix="/api", tags=["todos"])


def get_todo_service() -> TodoService:
    """Dependency placeholder, replaced at app startup."""
    raise RuntimeError("TodoService not initialized")


@router.get("/state")
async def get_state(
    hide_completed: bool = Query(False),
    service: TodoService = Depends(get_todo_service),
) -> StateResponse:
    return await service.get_state(hide_completed=hide_completed)


@router.post("/todos", status_code=status.HTTP_201_CREATED)
async def create_todo(
    request: CreateTodoRequest,
    service: TodoService = Depends(get_todo_service),
) -> StateResponse:
    try:
        return await service.add_todo(request.title, request.parent_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except EngineError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/todos/{todo_id}")
async def update_todo(
    todo_id: str,
    request: PatchTodoRequest,
    service: TodoService = Depends(get_todo_service),
) -> StateResponse:
    try:
        return await service.update_todo(todo_id, request)
    except NotFoundError:
        raise HTTPException(status_code=404, detail=f"Todo not found: {todo_id}")
    except EngineError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/todos/{todo_id}/toggle")
async def toggle_todo(
    todo_id: str,
    service: TodoService = Depends(get_todo_service),
) -> StateResponse:
    try:
        return await service.toggle_completed(todo_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail=f"Todo not found: {todo_id}")


@router.post("/todos/{todo_id}/move")
async def move_todo(
    todo_id: str,
    request: MoveTodoRequest,
    service: TodoService = Depends(get_todo_service),
) -> StateResponse:
    """Reparent and/or reorder a todo. target_index is its final sibling index."""
    try:
        return await service.move_todo(todo_id, request.target_parent_id, request.target_index)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except EngineError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/todos/{todo_id}/pinned")
async def set_pinned(
    todo_id: str,
    request: SetPinnedRequest,
    service: TodoService = Depends(get_todo_service),
) -> StateResponse:
    try:
        return await service.set_pinned(todo_id, request.pinned)
    except NotFoundError:
        raise HTTPException(status_code=404, detail=f"Todo not found: {todo_id}")


@router.delete("/todos/{todo_id}")
async def delete_todo(
    todo_id: str,
    service: TodoService = Depends(get_todo_service),
) -> StateResponse:
    """Delete a todo with its whole subtree and any pinned entries."""
    try:
        return await service.delete_todo(todo_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail=f"Todo not found: {todo_id}")


@router.post("/todos/{todo_id}/tags")
async def attach_tag(
    todo_id: str,
    request: AttachTagRequest,
    service: TodoService = Depends(get_todo_service),
) -> StateResponse:
    try:
        return await service.attach_tag(todo_id, request.tag_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/todos/{todo_id}/tags/{tag_id}")
async def detach_tag(
    todo_id: str,
    tag_id: str,
    service: TodoService = Depends(get_todo_service),
) -> StateResponse:
    try:
        return await service.detach_tag(todo_id, tag_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
