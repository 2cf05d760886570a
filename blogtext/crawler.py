"""Phase 1: discover a blog's post URLs."""

from typing import Awaitable, Callable

from rich.console import Console

from .cancel import CancelToken
from .config import ScrapeConfig
from .errors import FeedParseError, TransportExhausted
from .feeds import discover_feeds, parse_feed, well_known_feeds
from .models import Discovery, FeedDescriptor, FeedFormat
from .walker import walk_index

console = Console(stderr=True)

Reporter = Callable[..., Awaitable[None]]

FEED_LABELS = {FeedFormat.JSON: "JSON", FeedFormat.RSS: "RSS", FeedFormat.ATOM: "Atom"}


async def _discover_from_feed(
    feed: FeedDescriptor,
    transport,
    report: Reporter,
    cancel: CancelToken | None,
) -> Discovery | None:
    """Fetch and parse one feed. None when it yields nothing usable."""
    label = FEED_LABELS[feed.format]
    await report(f"Trying {label} feed ({feed.url})...")
    try:
        body = await transport.fetch(feed.url, cancel=cancel)
    except TransportExhausted:
        await report(f"{label} feed not found at {feed.url}")
        return None

    try:
        entries = parse_feed(body, feed)
    except FeedParseError as e:
        console.print(f"[yellow]Warning: {e}[/yellow]")
        await report(f"Ignoring {label} feed at {feed.url}: not a valid feed", "warning")
        return None

    if not entries:
        await report(f"{label} feed at {feed.url} lists no posts")
        return None

    discovery = Discovery(source=f"{label} feed")
    for entry in entries:
        discovery.references.append(entry.reference)
        if entry.content:
            discovery.inline.setdefault(entry.reference.url, entry)
    await report(f"Successfully parsed {label} feed. Found {len(entries)} posts.")
    return discovery


async def discover_posts(
    base_url: str,
    transport,
    config: ScrapeConfig,
    *,
    report: Reporter,
    limit: int | None = None,
    cancel: CancelToken | None = None,
    on_fallback: Callable[[], None] | None = None,
) -> Discovery:
    """
    Discover all posts on a blog.

    Strategies, first success wins: well-known feed paths, feeds declared in
    the base page's head, then a walk of the paginated HTML index.

    Raises:
        TransportExhausted: the base page itself could not be fetched.
    """
    tried: set[str] = set()

    # Zero-cost attempt, no page fetch needed
    for feed in well_known_feeds(base_url, config):
        tried.add(feed.url)
        discovery = await _discover_from_feed(feed, transport, report, cancel)
        if discovery:
            return discovery

    await report(f"Fetching {base_url} to look for feed links...")
    first_page = await transport.fetch(base_url, cancel=cancel)

    declared = [feed for feed in discover_feeds(first_page, base_url) if feed.url not in tried]
    for feed in declared:
        discovery = await _discover_from_feed(feed, transport, report, cancel)
        if discovery:
            return discovery

    await report("No feed found, falling back to page scan")
    if on_fallback:
        on_fallback()

    references = await walk_index(
        base_url,
        transport,
        first_page=first_page,
        limit=limit,
        max_pages=config.max_index_pages,
        report=report,
        cancel=cancel,
    )
    if references:
        await report(f"Page scan found {len(references)} posts")
    return Discovery(references=references, source="index pages")
