"""FastAPI routes for tag definitions."""

from fastapi import APIRouter, Depends, HTTPException, status

from nestlist.errors import EngineError, NotFoundError
from nestlist.todos.router import get_todo_service
from nestlist.todos.schemas import StateResponse, TagRequest
from nestlist.todos.service import TodoService

router = APIRouter(prefix="/api/tags", tags=["tags"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_tag(
    request: TagRequest,
    service: TodoService = Depends(get_todo_service),
) -> StateResponse:
    try:
        return await service.add_tag(request.name)
    except EngineError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/{tag_id}")
async def rename_tag(
    tag_id: str,
    request: TagRequest,
    service: TodoService = Depends(get_todo_service),
) -> StateResponse:
    try:
        return await service.rename_tag(tag_id, request.name)
    except NotFoundError:
        raise HTTPException(status_code=404, detail=f"Tag not found: {tag_id}")
    except EngineError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{tag_id}")
async def delete_tag(
    tag_id: str,
    service: TodoService = Depends(get_todo_service),
) -> StateResponse:
    """Delete a tag and detach it from every todo."""
    try:
        return await service.delete_tag(tag_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail=f"Tag not found: {tag_id}")
