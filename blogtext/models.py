"""Data model shared by the discovery and extraction pipeline."""

from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class PostReference:
    """A discovered post, prior to content extraction."""
    title: str
    url: str


@dataclass(frozen=True)
class ExtractedPost:
    """Represents the clean text of one article."""
    title: str
    content: str
    date: str | None = None
    url: str | None = None

    def to_dict(self) -> dict:
        data = {"title": self.title, "content": self.content}
        if self.date:
            data["date"] = self.date
        if self.url:
            data["url"] = self.url
        return data


@dataclass
class ScrapeRequest:
    """Input of a run. A missing or non-positive limit means unbounded."""
    base_url: str
    limit: int | None = None

    @property
    def effective_limit(self) -> int | None:
        if self.limit is None or self.limit <= 0:
            return None
        return self.limit


class FeedFormat(str, Enum):
    JSON = "json"
    RSS = "rss"
    ATOM = "atom"


@dataclass(frozen=True)
class FeedDescriptor:
    format: FeedFormat
    url: str


@dataclass(frozen=True)
class FeedEntry:
    """One usable item of a feed, with inline plain-text content when the feed carries it."""
    reference: PostReference
    content: str | None = None
    date: str | None = None

    def to_post(self) -> ExtractedPost | None:
        if not self.content:
            return None
        return ExtractedPost(
            title=self.reference.title,
            content=self.content,
            date=self.date,
            url=self.reference.url,
        )


@dataclass(frozen=True)
class Status:
    """Informational, non-terminal progress message."""
    message: str
    level: str = "info"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"


@dataclass(frozen=True)
class Post:
    """One extracted article."""
    data: ExtractedPost


ProgressEvent = Status | Post


@dataclass(frozen=True)
class Completed:
    """Run finished; zero posts is still a completed run."""
    posts: int = 0
    cancelled: bool = False


@dataclass(frozen=True)
class Failed:
    """Run could not fetch its initial page (or broke unexpectedly)."""
    error: Exception


RunOutcome = Completed | Failed


class RunState(str, Enum):
    IDLE = "idle"
    DISCOVERING_FEEDS = "discovering_feeds"
    DISCOVERING_FALLBACK = "discovering_fallback"
    EXTRACTING_CONTENT = "extracting_content"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class Discovery:
    """Result of phase 1: references in discovery order plus any inline feed content."""
    references: list[PostReference] = field(default_factory=list)
    inline: dict[str, FeedEntry] = field(default_factory=dict)
    source: str = "none"
