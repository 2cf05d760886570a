"""In-memory sorting and filtering of extracted posts."""

from enum import Enum

from .models import ExtractedPost


class SortOrder(str, Enum):
    DEFAULT = "default"
    TITLE_ASC = "title-asc"
    TITLE_DESC = "title-desc"
    LENGTH_ASC = "length-asc"
    LENGTH_DESC = "length-desc"


def sort_posts(posts: list[ExtractedPost], order: SortOrder | str = SortOrder.DEFAULT) -> list[ExtractedPost]:
    """Return a sorted copy; the default order is discovery order."""
    order = SortOrder(order)
    if order == SortOrder.TITLE_ASC:
        return sorted(posts, key=lambda p: p.title.casefold())
    if order == SortOrder.TITLE_DESC:
        return sorted(posts, key=lambda p: p.title.casefold(), reverse=True)
    if order == SortOrder.LENGTH_ASC:
        return sorted(posts, key=lambda p: len(p.content))
    if order == SortOrder.LENGTH_DESC:
        return sorted(posts, key=lambda p: len(p.content), reverse=True)
    return list(posts)


def filter_posts(posts: list[ExtractedPost], query: str | None) -> list[ExtractedPost]:
    """Case-insensitive substring match on title or content."""
    if not query:
        return list(posts)
    query = query.lower()
    return [p for p in posts if query in p.title.lower() or query in p.content.lower()]


def select_posts(
    posts: list[ExtractedPost],
    order: SortOrder | str = SortOrder.DEFAULT,
    query: str | None = None,
    count: int | None = None,
) -> list[ExtractedPost]:
    """Sort, filter, then keep the first ``count`` posts (all when count is missing or <= 0)."""
    selected = filter_posts(sort_posts(posts, order), query)
    if count and count > 0:
        selected = selected[:count]
    return selected
