"""Search API response schemas."""

from pydantic import BaseModel, Field


class SearchNode(BaseModel):
    id: str
    title: str
    completed: bool
    pinned: bool
    parent_id: str | None = None
    position: int
    tag_ids: list[str] = Field(default_factory=list)
    matched: bool = False
    score: float | None = None
    ranges: list[tuple[int, int]] = Field(default_factory=list)
    children: list["SearchNode"] = Field(default_factory=list)


class SearchHit(BaseModel):
    id: str
    title: str
    parent_id: str | None = None
    score: float
    ranges: list[tuple[int, int]]


class SearchResponse(BaseModel):
    query: str
    tag_ids: list[str]
    active: bool
    total: int
    hits: list[SearchHit]
    todos: list[SearchNode]
