"""Phase 2: fetch every discovered post and extract its text."""

from typing import Awaitable, Callable

from rich.console import Console

from .cancel import CancelToken
from .errors import RunCancelled
from .extractor import ContentExtractor, UNTITLED
from .models import ExtractedPost, FeedEntry, Post, PostReference, Status

console = Console(stderr=True)

Emit = Callable[[Status | Post], Awaitable[None]]


def merge_post(ref: PostReference, extracted: ExtractedPost, entry: FeedEntry | None = None) -> ExtractedPost:
    """Discovery title wins unless it is missing; the page date wins over the feed date."""
    title = ref.title if ref.title and ref.title != UNTITLED else extracted.title
    date = extracted.date or (entry.date if entry else None)
    return ExtractedPost(title=title, content=extracted.content, date=date, url=ref.url)


async def extract_posts(
    references: list[PostReference],
    transport,
    extractor: ContentExtractor,
    *,
    emit: Emit,
    inline: dict[str, FeedEntry] | None = None,
    refetch_inline: bool = False,
    cancel: CancelToken | None = None,
) -> int:
    """
    Process references one at a time, in order.

    Each success is emitted as a ``Post``; each failure as a warning
    ``Status`` and skipped. Returns the number of posts emitted.
    """
    cancel = cancel or CancelToken()
    inline = inline or {}
    emitted = 0

    for ref in references:
        cancel.raise_if_cancelled()
        entry = inline.get(ref.url)
        inline_post = entry.to_post() if entry else None

        if inline_post is not None and not refetch_inline:
            await emit(Post(inline_post))
            emitted += 1
            continue

        await emit(Status(f'Fetching content for: "{ref.title}"...'))
        try:
            markup = await transport.fetch(ref.url, cancel=cancel)
            extracted = await cancel.guard(extractor.extract(markup, ref.url))
        except RunCancelled:
            raise
        except Exception as e:
            if inline_post is not None:
                await emit(Status(f'Could not refetch "{ref.title}" ({e}), using feed content', "warning"))
                await emit(Post(inline_post))
                emitted += 1
                continue
            console.print(f"[yellow]Warning: Failed to process {ref.url}: {e}[/yellow]")
            await emit(Status(f'Skipping post due to error: "{ref.title}" ({e})', "warning"))
            continue

        await emit(Post(merge_post(ref, extracted, entry)))
        emitted += 1

    return emitted
