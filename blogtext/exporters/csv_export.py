"""Export posts to CSV."""

from datetime import date
from pathlib import Path

from rich.console import Console

from ..models import ExtractedPost

console = Console()

CSV_FIELDS = ["title", "date", "content"]


def escape_csv_field(value: str | None) -> str:
    """Quote a field containing a comma, quote or line break, doubling embedded quotes."""
    if value is None:
        return ""
    value = str(value)
    if any(c in value for c in ',"\n\r'):
        value = '"' + value.replace('"', '""') + '"'
    return value


def to_csv(posts: list[ExtractedPost]) -> str:
    """Serialize posts as CSV with a ``title,date,content`` header, rows joined by ``\\n``."""
    rows = [",".join(CSV_FIELDS)]
    for post in posts:
        rows.append(",".join(escape_csv_field(v) for v in (post.title, post.date, post.content)))
    return "\n".join(rows)


def export_csv(posts: list[ExtractedPost], output_dir: Path, filename: str | None = None) -> Path:
    """Write posts to ``output_dir``; returns the file path."""
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / (filename or f"blog-posts-{date.today().isoformat()}.csv")
    path.write_text(to_csv(posts), encoding="utf-8")
    console.print(f"[green]CSV saved to {path}[/green]")
    return path
