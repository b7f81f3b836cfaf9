"""Todo search: fuzzy title matching plus tag filtering over the forest."""

import logging

from nestlist.db.snapshots import SnapshotStore
from nestlist.models import TodoNode, TodoSnapshot
from nestlist.search.fuzzy import match, tokenize_query
from nestlist.search.schemas import SearchHit, SearchNode, SearchResponse
from nestlist.tree.forest import TodoForest

logger = logging.getLogger(__name__)


def search_todos(
    snapshot: TodoSnapshot,
    query: str,
    *,
    tag_ids: list[str] | None = None,
    hide_completed: bool = False,
) -> SearchResponse:
    """Prune the tree to matching todos and their ancestors.

    A todo matches when it carries at least one of tag_ids (if any are
    given) and every query token fuzzy-matches its title. With a blank
    query and no tags the search is inactive and the whole tree is
    returned unmarked.
    """
    selected_tags = set(tag_ids or [])
    has_query = bool(tokenize_query(query))
    active = has_query or bool(selected_tags)
    nodes = TodoForest(snapshot.todos).to_nodes(hide_completed=hide_completed)

    hits: list[SearchHit] = []

    def visit(node: TodoNode) -> SearchNode | None:
        children = [c for c in (visit(child) for child in node.children) if c is not None]

        matched, score, ranges = False, None, []
        if active and (not selected_tags or selected_tags.intersection(node.tag_ids)):
            if has_query:
                result = match(query, node.title)
                if result is not None:
                    matched, score, ranges = True, result.score, result.ranges
            else:
                matched, score = True, 1.0

        if matched:
            hits.append(SearchHit(
                id=node.id, title=node.title, parent_id=node.parent_id,
                score=score, ranges=ranges,
            ))
        if active and not matched and not children:
            return None
        return SearchNode(
            id=node.id,
            title=node.title,
            completed=node.completed,
            pinned=node.pinned,
            parent_id=node.parent_id,
            position=node.position,
            tag_ids=node.tag_ids,
            matched=matched,
            score=score,
            ranges=ranges,
            children=children,
        )

    todos = [n for n in (visit(node) for node in nodes) if n is not None]

    # hits were collected in post-order; restore preorder before ranking
    preorder = {todo_id: i for i, todo_id in enumerate(_preorder_ids(todos))}
    hits.sort(key=lambda h: (-h.score, preorder.get(h.id, 0)))

    return SearchResponse(
        query=query,
        tag_ids=sorted(selected_tags),
        active=active,
        total=len(hits),
        hits=hits,
        todos=todos,
    )


def _preorder_ids(nodes: list[SearchNode]) -> list[str]:
    ids: list[str] = []
    stack = list(reversed(nodes))
    while stack:
        node = stack.pop()
        ids.append(node.id)
        stack.extend(reversed(node.children))
    return ids


class SearchService:
    """Runs searches against a freshly loaded snapshot."""

    def __init__(self, store: SnapshotStore) -> None:
        self._store = store

    async def search(
        self,
        query: str,
        *,
        tag_ids: list[str] | None = None,
        hide_completed: bool = False,
    ) -> SearchResponse:
        snapshot = await self._store.read()
        response = search_todos(
            snapshot, query, tag_ids=tag_ids, hide_completed=hide_completed
        )
        logger.debug("Search %r matched %d todos", query, response.total)
        return response
