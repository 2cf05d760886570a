"""Two-phase scraping run: URL discovery, then sequential content extraction."""

import asyncio
import contextlib
from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Callable

from rich.console import Console

from .cancel import CancelToken
from .config import ScrapeConfig
from .crawler import discover_posts
from .downloader import extract_posts
from .errors import RunCancelled, TransportExhausted
from .extractor import ContentExtractor, HeuristicExtractor
from .models import (
    Completed,
    ExtractedPost,
    Failed,
    Post,
    PostReference,
    ProgressEvent,
    RunOutcome,
    RunState,
    ScrapeRequest,
    Status,
)
from .transport import Transport
from .validation import validate_request

console = Console(stderr=True)

Sink = Callable[[ProgressEvent | RunOutcome], Awaitable[None]]


@dataclass
class RunContext:
    """Mutable state of exactly one run, owned by the orchestrator."""
    request: ScrapeRequest
    cancel: CancelToken
    state: RunState = RunState.IDLE
    seen_urls: set[str] = field(default_factory=set)
    posts_emitted: int = 0
    warnings: int = 0


def dedupe_references(
    references: list[PostReference],
    limit: int | None = None,
    seen: set[str] | None = None,
) -> list[PostReference]:
    """Drop repeated URLs (first-seen title wins), then cap at ``limit``."""
    seen = set() if seen is None else seen
    unique = []
    for ref in references:
        if ref.url in seen:
            continue
        seen.add(ref.url)
        unique.append(ref)
    return unique[:limit] if limit is not None else unique


class Scraper:
    """
    Pipeline orchestrator.

    Every event of a run goes to a single sink, in order, followed by exactly
    one ``Completed`` or ``Failed`` outcome.
    """

    def __init__(
        self,
        config: ScrapeConfig | None = None,
        transport=None,
        extractor: ContentExtractor | None = None,
    ):
        self.config = config or ScrapeConfig()
        self.transport = transport
        self.extractor = extractor or HeuristicExtractor()

    async def run(
        self,
        request: ScrapeRequest,
        sink: Sink,
        cancel: CancelToken | None = None,
    ) -> RunOutcome:
        """
        Scrape every post of ``request.base_url``.

        Raises:
            InvalidInput: before any network activity, no outcome is sent.
        """
        request = validate_request(request, self.config.max_post_limit)
        ctx = RunContext(request=request, cancel=cancel or CancelToken())

        async def emit(event: ProgressEvent) -> None:
            if isinstance(event, Post):
                ctx.posts_emitted += 1
            elif event.is_warning:
                ctx.warnings += 1
            await sink(event)

        async def report(message: str, level: str = "info") -> None:
            await emit(Status(message, level))

        transport = self.transport
        owns_transport = transport is None
        if owns_transport:
            transport = Transport(self.config)

        try:
            outcome = await self._run(ctx, transport, emit, report)
        except RunCancelled:
            await report("Run cancelled")
            outcome = Completed(posts=ctx.posts_emitted, cancelled=True)
        except TransportExhausted as e:
            console.print(f"[red]Error: could not fetch {request.base_url}: {e}[/red]")
            ctx.state = RunState.FAILED
            outcome = Failed(e)
        except Exception as e:
            console.print(f"[red]Error scraping {request.base_url}: {e}[/red]")
            ctx.state = RunState.FAILED
            outcome = Failed(e)
        finally:
            if owns_transport:
                await transport.aclose()

        await sink(outcome)
        return outcome

    async def _run(self, ctx: RunContext, transport, emit, report) -> RunOutcome:
        request = ctx.request
        limit = request.effective_limit

        # Phase 1: link discovery
        ctx.state = RunState.DISCOVERING_FEEDS
        await report(f"Discovering posts on {request.base_url}...")

        def on_fallback() -> None:
            ctx.state = RunState.DISCOVERING_FALLBACK

        discovery = await discover_posts(
            request.base_url,
            transport,
            self.config,
            report=report,
            limit=limit,
            cancel=ctx.cancel,
            on_fallback=on_fallback,
        )

        references = dedupe_references(discovery.references, limit, ctx.seen_urls)
        if not references:
            await report("No blog posts found on this page.")
            ctx.state = RunState.COMPLETED
            return Completed(posts=0)
        if limit is not None and len(discovery.references) > len(references):
            await report(f"Limiting to {len(references)} posts")

        # Phase 2: full content extraction
        ctx.state = RunState.EXTRACTING_CONTENT
        await report(f"Extracting content of {len(references)} posts from {discovery.source}...")
        await extract_posts(
            references,
            transport,
            self.extractor,
            emit=emit,
            inline=discovery.inline,
            refetch_inline=self.config.refetch_inline_content,
            cancel=ctx.cancel,
        )

        if ctx.posts_emitted == 0:
            await report("No posts could be extracted.")
        else:
            await report(f"Extracted {ctx.posts_emitted} of {len(references)} posts")
        ctx.state = RunState.COMPLETED
        return Completed(posts=ctx.posts_emitted)

    async def stream(
        self,
        request: ScrapeRequest,
        cancel: CancelToken | None = None,
    ) -> AsyncIterator[ProgressEvent | RunOutcome]:
        """
        Yield the run's events and, last, its outcome.

        Closing the iterator early cancels the run.
        """
        validate_request(request, self.config.max_post_limit)
        cancel = cancel or CancelToken()
        queue: asyncio.Queue = asyncio.Queue()
        task = asyncio.create_task(self.run(request, queue.put, cancel))
        try:
            while True:
                item = await queue.get()
                yield item
                if isinstance(item, (Completed, Failed)):
                    break
            await task
        finally:
            if not task.done():
                cancel.cancel()
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    async def scrape(self, request: ScrapeRequest, cancel: CancelToken | None = None) -> list[ExtractedPost]:
        """Collect every extracted post; raises the error of a failed run."""
        posts: list[ExtractedPost] = []

        async def sink(event) -> None:
            if isinstance(event, Post):
                posts.append(event.data)

        outcome = await self.run(request, sink, cancel)
        if isinstance(outcome, Failed):
            raise outcome.error
        return posts
