"""Export posts to JSON."""

import json
from datetime import date
from pathlib import Path

from rich.console import Console

from ..models import ExtractedPost

console = Console()


def to_json(posts: list[ExtractedPost]) -> str:
    """Pretty-printed JSON array of posts."""
    return json.dumps([post.to_dict() for post in posts], indent=2, ensure_ascii=False)


def export_json(posts: list[ExtractedPost], output_dir: Path, filename: str | None = None) -> Path:
    """Write posts to ``output_dir``; returns the file path."""
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / (filename or f"blog-posts-{date.today().isoformat()}.json")
    path.write_text(to_json(posts), encoding="utf-8")
    console.print(f"[green]JSON saved to {path}[/green]")
    return path
