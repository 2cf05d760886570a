"""Discover and extract the full text of every post on a blog."""

from . import crawler, downloader, pipeline, transport, walker
from .exporters import csv_export, json_export
from .cancel import CancelToken
from .config import ScrapeConfig
from .errors import (
    BlogTextError,
    ExtractionError,
    FeedParseError,
    InvalidInput,
    RunCancelled,
    TransportExhausted,
)
from .extractor import ContentExtractor, DelegateExtractor, HeuristicExtractor
from .models import (
    Completed,
    ExtractedPost,
    Failed,
    FeedDescriptor,
    FeedFormat,
    Post,
    PostReference,
    ScrapeRequest,
    Status,
)
from .pipeline import Scraper
from .transport import Transport

__version__ = "0.1.0"


def set_quiet(quiet: bool = True) -> None:
    """Silence (or restore) the library's console output."""
    for module in (crawler, downloader, pipeline, transport, walker, csv_export, json_export):
        module.console.quiet = quiet


__all__ = [
    "BlogTextError",
    "CancelToken",
    "Completed",
    "ContentExtractor",
    "DelegateExtractor",
    "ExtractedPost",
    "ExtractionError",
    "Failed",
    "FeedDescriptor",
    "FeedFormat",
    "FeedParseError",
    "HeuristicExtractor",
    "InvalidInput",
    "Post",
    "PostReference",
    "RunCancelled",
    "ScrapeConfig",
    "ScrapeRequest",
    "Scraper",
    "Status",
    "Transport",
    "TransportExhausted",
    "set_quiet",
]
