"""Fallback discovery: walk a blog's paginated HTML index pages."""

import re
from typing import Awaitable, Callable

from bs4 import BeautifulSoup
from rich.console import Console

from .cancel import CancelToken
from .config import MAX_INDEX_PAGES
from .errors import TransportExhausted
from .feeds import UNTITLED, resolve_url
from .models import PostReference

console = Console(stderr=True)

# Heading-anchor patterns typical of article lists, in order of preference.
# The first selector that matches anything on a page wins for that page.
POST_LINK_SELECTORS = [
    "article h1.entry-title a[href]",
    "article h2.entry-title a[href]",
    "h2.entry-title a[href]",
    "h2.post-title a[href]",
    "h3.post-title a[href]",
    ".post-title a[href]",
    ".entry-title a[href]",
    "article h2 a[href]",
    "article h3 a[href]",
    "article h1 a[href]",
    ".post h2 a[href]",
    ".post-list h2 a[href]",
    "a.post-card-content-link[href]",
    "main h2 a[href]",
    "h2 a[href]",
    "h3 a[href]",
]

NEXT_LINK_SELECTORS = [
    "a[rel~=next][href]",
    "link[rel~=next][href]",
    ".nav-previous a[href]",
    ".pagination .next[href]",
    ".pagination-next a[href]",
    "a.next[href]",
    "a.older-posts[href]",
    ".next a[href]",
    "a.blog-pager-older-link[href]",
]

NEXT_LINK_TEXT = re.compile(
    r"^\s*(?:older\s+posts|older\s+entries|next\s+page|next\s*[›»]|»)",
    re.IGNORECASE,
)

Reporter = Callable[..., Awaitable[None]]


def extract_post_links(markup: str, page_url: str) -> list[PostReference]:
    """Post links of one index page, resolved against that page."""
    soup = BeautifulSoup(markup, "lxml")
    for selector in POST_LINK_SELECTORS:
        anchors = soup.select(selector)
        refs: list[PostReference] = []
        seen: set[str] = set()
        for anchor in anchors:
            url = resolve_url(anchor.get("href"), page_url)
            if url is None or url in seen or url.rstrip("/") == page_url.rstrip("/"):
                continue
            seen.add(url)
            title = anchor.get_text(" ", strip=True) or anchor.get("title") or UNTITLED
            refs.append(PostReference(title=title, url=url))
        if refs:
            return refs
    return []


def extract_next_link(markup: str, page_url: str) -> str | None:
    """The single "next page" link of an index page, if any."""
    soup = BeautifulSoup(markup, "lxml")
    for selector in NEXT_LINK_SELECTORS:
        for elem in soup.select(selector):
            url = resolve_url(elem.get("href"), page_url)
            if url and url != page_url:
                return url
    for anchor in soup.find_all("a", href=True):
        text = anchor.get_text(" ", strip=True)
        label = anchor.get("aria-label") or ""
        if NEXT_LINK_TEXT.match(text) or NEXT_LINK_TEXT.match(label):
            url = resolve_url(anchor["href"], page_url)
            if url and url != page_url:
                return url
    return None


async def walk_index(
    start_url: str,
    transport,
    *,
    first_page: str | None = None,
    limit: int | None = None,
    max_pages: int = MAX_INDEX_PAGES,
    report: Reporter | None = None,
    cancel: CancelToken | None = None,
) -> list[PostReference]:
    """
    Follow "next page" links from ``start_url`` collecting post references.

    Stops when there is no next link, ``limit`` references were found, the
    next link was already visited, or ``max_pages`` pages were walked.
    """
    discovered: dict[str, PostReference] = {}
    visited: set[str] = set()
    cursor: str | None = start_url
    markup = first_page
    pages = 0

    while cursor is not None:
        if cancel is not None:
            cancel.raise_if_cancelled()
        if pages >= max_pages:
            if report:
                await report(f"Stopped page scan after {max_pages} pages")
            break
        visited.add(cursor)

        if markup is None:
            try:
                markup = await transport.fetch(cursor, cancel=cancel)
            except TransportExhausted as e:
                console.print(f"[yellow]Warning: Failed to fetch index page {cursor}: {e}[/yellow]")
                if report:
                    await report(f"Skipping index page {cursor}: {e}", "warning")
                break
        pages += 1

        links = extract_post_links(markup, cursor)
        next_url = extract_next_link(markup, cursor)
        for ref in links:
            discovered.setdefault(ref.url, ref)

        if pages == 1 and not links and next_url is None:
            break
        if limit is not None and len(discovered) >= limit:
            break
        if next_url is not None and next_url in visited:
            break

        cursor = next_url
        markup = None

    refs = list(discovered.values())
    return refs[:limit] if limit is not None else refs
