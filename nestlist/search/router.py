"""Search API routes."""

from fastapi import APIRouter, Depends, Query

from nestlist.search.schemas import SearchResponse
from nestlist.search.service import SearchService

router = APIRouter(prefix="/api", tags=["search"])


def get_search_service() -> SearchService:
    """Dependency placeholder, overridden at startup."""
    raise RuntimeError("SearchService not configured")


def _split_csv(value: str | None) -> list[str] | None:
    """Split a comma-separated query param into a list, or None."""
    if not value:
        return None
    return [v.strip() for v in value.split(",") if v.strip()]


@router.get("/search")
async def search(
    q: str = Query(""),
    tags: str | None = Query(None),
    hide_completed: bool = Query(False),
    service: SearchService = Depends(get_search_service),
) -> SearchResponse:
    """Fuzzy title search, optionally narrowed to todos carrying any of the given tags."""
    return await service.search(
        q,
        tag_ids=_split_csv(tags),
        hide_completed=hide_completed,
    )
