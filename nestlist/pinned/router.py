"""FastAPI routes for pinned lists and pinned-entry ordering."""

from fastapi import APIRouter, Depends, HTTPException, status

from nestlist.errors import EngineError, NotFoundError
from nestlist.todos.router import get_todo_service
from nestlist.todos.schemas import MovePinnedTodoRequest, PinnedListRequest, StateResponse
from nestlist.todos.service import TodoService

router = APIRouter(prefix="/api", tags=["pinned"])


@router.post("/pinned-lists", status_code=status.HTTP_201_CREATED)
async def create_pinned_list(
    request: PinnedListRequest,
    service: TodoService = Depends(get_todo_service),
) -> StateResponse:
    try:
        return await service.add_pinned_list(request.title)
    except EngineError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/pinned-lists/{list_id}")
async def rename_pinned_list(
    list_id: str,
    request: PinnedListRequest,
    service: TodoService = Depends(get_todo_service),
) -> StateResponse:
    try:
        return await service.rename_pinned_list(list_id, request.title)
    except NotFoundError:
        raise HTTPException(status_code=404, detail=f"Pinned list not found: {list_id}")
    except EngineError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/pinned-lists/{list_id}")
async def delete_pinned_list(
    list_id: str,
    service: TodoService = Depends(get_todo_service),
) -> StateResponse:
    """Delete a secondary list; its entries move to the end of the primary list."""
    try:
        return await service.delete_pinned_list(list_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail=f"Pinned list not found: {list_id}")
    except EngineError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/pinned-todos/move")
async def move_pinned_todo(
    request: MovePinnedTodoRequest,
    service: TodoService = Depends(get_todo_service),
) -> StateResponse:
    try:
        return await service.move_pinned_todo(
            request.todo_id, request.target_list_id, request.target_index
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
