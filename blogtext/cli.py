"""CLI entry point for blogtext."""

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from . import set_quiet
from .config import ScrapeConfig
from .errors import InvalidInput
from .exporters import export_csv, export_json
from .models import ExtractedPost, Failed, Post, ScrapeRequest, Status
from .pipeline import Scraper
from .selection import SortOrder, select_posts
from .semantic import semantic_extractor
from .validation import normalize_url

app = typer.Typer(
    name="blogtext",
    help="Extract the full text of every post on a blog.",
    add_completion=False,
)
console = Console()


@app.command()
def main(
    url: str = typer.Argument(..., help="Blog URL to scrape"),
    output: Path = typer.Option(
        Path("./output"),
        "-o", "--output",
        help="Output directory",
    ),
    format: str = typer.Option(
        "all",
        "-f", "--format",
        help="Output format: all, csv, json, or comma-separated list",
    ),
    limit: int = typer.Option(
        None,
        "-n", "--limit",
        help="Maximum number of posts to extract",
    ),
    sort: SortOrder = typer.Option(
        SortOrder.DEFAULT,
        "--sort",
        help="Order of exported posts",
    ),
    query: str = typer.Option(
        None,
        "--filter",
        help="Only export posts whose title or content contains this text",
    ),
    refetch_inline: bool = typer.Option(
        False,
        "--refetch-inline",
        help="Fetch post pages even when the feed already carries their content",
    ),
    semantic: bool = typer.Option(
        False,
        "--semantic",
        help="Extract content with an OpenAI-compatible model instead of HTML heuristics",
    ),
    max_pages: int = typer.Option(
        None,
        "--max-pages",
        help="Maximum number of index pages to walk when the blog has no feed",
    ),
    quiet: bool = typer.Option(
        False,
        "-q", "--quiet",
        help="Only print the summary",
    ),
):
    """
    Extract every post of a blog to CSV/JSON.

    Example:
        blogtext https://example.com/blog/ -n 10 -f json
    """
    set_quiet(quiet)
    try:
        url = normalize_url(url)
    except InvalidInput as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    config = ScrapeConfig.from_env(
        refetch_inline_content=refetch_inline or None,
        max_index_pages=max_pages,
    )

    formats = {"csv", "json"} if format == "all" else {f.strip().lower() for f in format.split(",")}
    unknown = formats - {"csv", "json"}
    if unknown:
        console.print(f"[red]Error: unknown format(s): {', '.join(sorted(unknown))}[/red]")
        raise typer.Exit(1)

    extractor = None
    if semantic:
        try:
            extractor = semantic_extractor(config)
        except ValueError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)

    code = asyncio.run(_run(url, limit, config, extractor, output, formats, sort, query, quiet))
    raise typer.Exit(code)


async def _run(
    url: str,
    limit: int | None,
    config: ScrapeConfig,
    extractor,
    output: Path,
    formats: set[str],
    sort: SortOrder,
    query: str | None,
    quiet: bool,
) -> int:
    """Async main function. Returns the exit code."""
    console.print(f"\n[bold]blogtext[/bold] - Extracting {url}\n")

    scraper = Scraper(config=config, extractor=extractor)
    posts: list[ExtractedPost] = []
    outcome = None

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            disable=quiet,
        ) as progress:
            task = progress.add_task("[cyan]Starting...", total=None)
            async for event in scraper.stream(ScrapeRequest(base_url=url, limit=limit)):
                if isinstance(event, Status):
                    if event.is_warning and not quiet:
                        progress.console.print(f"[yellow]Warning: {event.message}[/yellow]")
                    elif not event.is_warning:
                        progress.update(task, description=f"[cyan]{event.message}")
                elif isinstance(event, Post):
                    posts.append(event.data)
                    if not quiet:
                        progress.console.print(f"[green]✓[/green] {event.data.title}")
                else:
                    outcome = event
    except InvalidInput as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    if isinstance(outcome, Failed):
        console.print(f"[red]Error discovering posts: {outcome.error}[/red]")
        return 1

    if not posts:
        console.print("[yellow]No posts found.[/yellow]")
        return 0

    console.print(f"\n[bold]Extracted {len(posts)} posts[/bold]\n")

    selected = select_posts(posts, sort, query)
    if not selected:
        console.print("[yellow]No posts match the filter, nothing exported.[/yellow]")
        return 0

    if "csv" in formats:
        export_csv(selected, output)
    if "json" in formats:
        export_json(selected, output)

    console.print(f"\n[bold green]Done![/bold green] Output saved to {output.absolute()}\n")
    return 0


if __name__ == "__main__":
    app()
