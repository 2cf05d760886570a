"""Extract clean ``{title, content}`` pairs from a single post's markup."""

import json
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Awaitable, Callable

from bs4 import BeautifulSoup

from .cleaner import element_to_text, normalize_text, remove_unwanted
from .errors import ExtractionError
from .models import ExtractedPost

UNTITLED = "Untitled"


class ContentExtractor(ABC):
    """Strategy interface: the orchestrator depends only on ``extract``."""

    name: str = "unknown"

    @abstractmethod
    async def extract(self, markup: str, url: str | None = None) -> ExtractedPost:
        """Return the post's title and plain-text content, or raise ``ExtractionError``."""
        raise NotImplementedError


class HeuristicExtractor(ContentExtractor):
    """Structural extraction: strip page chrome, pick the main container, collapse to text."""

    name = "heuristic"

    # Content containers, most specific first
    CONTENT_SELECTORS = [
        "article .entry-content",
        "div.entry-content",
        "div.post-content",
        "div.gh-content",
        "div.single-content",
        "div.available-content",
        "article .post-body",
        ".post-body",
        ".post-content",
        ".widget-content",
        "#main-content",
        '[role="article"]',
        "article",
        "#content",
        "main",
        ".entry-content",
    ]

    TITLE_SELECTORS = [
        "h1.entry-title",
        "h1.post-title",
        "h1.post-full-title",
        "h1.article-title",
        "article h1",
        ".post-title",
        "h1",
    ]

    ARTICLE_TYPES = ["Article", "NewsArticle", "BlogPosting", "WebPage"]

    async def extract(self, markup: str, url: str | None = None) -> ExtractedPost:
        return self.extract_article(markup, url)

    def extract_article(self, markup: str, url: str | None = None) -> ExtractedPost:
        if not markup or not markup.strip():
            raise ExtractionError("Empty document")
        soup = BeautifulSoup(markup, "lxml")

        # Metadata first, headers are removed with the rest of the page chrome
        metadata = self._extract_json_ld(soup)
        title = metadata.get("title") or self._extract_title(soup)
        date = metadata.get("date") or self._extract_date(soup)

        remove_unwanted(soup)
        container = self._select_container(soup)
        if container is None:
            raise ExtractionError("Document has no body")

        content = element_to_text(container)
        if not content:
            raise ExtractionError("No readable content found")

        return ExtractedPost(title=title or UNTITLED, content=content, date=date, url=url)

    def _select_container(self, soup: BeautifulSoup):
        for selector in self.CONTENT_SELECTORS:
            elem = soup.select_one(selector)
            if elem is not None and elem.get_text(strip=True):
                return elem
        return soup.body or soup

    def _extract_json_ld(self, soup: BeautifulSoup) -> dict:
        """Extract title and date from JSON-LD script tags."""
        result = {"title": None, "date": None}

        for script_tag in soup.find_all("script", {"type": "application/ld+json"}):
            if not script_tag.string:
                continue
            try:
                data = json.loads(script_tag.string)
            except (json.JSONDecodeError, TypeError):
                continue

            if isinstance(data, dict) and isinstance(data.get("@graph"), list):
                data = data["@graph"]
            # Handle array of JSON-LD objects
            if isinstance(data, list):
                for item in data:
                    if isinstance(item, dict) and self._is_article(item):
                        data = item
                        break
                else:
                    continue
            if not isinstance(data, dict) or (_ld_types(data) and not self._is_article(data)):
                continue

            if not result["title"]:
                headline = data.get("headline") or data.get("name")
                if isinstance(headline, str) and headline.strip():
                    result["title"] = headline.strip()
            if not result["date"]:
                result["date"] = _iso_date(data.get("datePublished") or data.get("dateCreated"))

        return result

    def _is_article(self, item: dict) -> bool:
        return any(t in self.ARTICLE_TYPES for t in _ld_types(item))

    def _extract_title(self, soup: BeautifulSoup) -> str | None:
        for selector in self.TITLE_SELECTORS:
            elem = soup.select_one(selector)
            if elem and elem.get_text(strip=True):
                return elem.get_text(" ", strip=True)

        og_title = soup.find("meta", property="og:title")
        if og_title and og_title.get("content"):
            return og_title["content"].strip()

        title_tag = soup.find("title")
        if title_tag and title_tag.get_text(strip=True):
            title = title_tag.get_text(strip=True)
            # Remove site name (usually after | or -)
            for sep in [" | ", " - ", " :: ", " – ", " — "]:
                if sep in title:
                    title = title.split(sep)[0].strip()
                    break
            return title

        return None

    def _extract_date(self, soup: BeautifulSoup) -> str | None:
        date_meta = soup.find("meta", property="article:published_time")
        if date_meta and date_meta.get("content"):
            date = _iso_date(date_meta["content"])
            if date:
                return date

        time_elem = soup.find("time", datetime=True)
        if time_elem:
            return _iso_date(time_elem["datetime"])

        return None


def _ld_types(item: dict) -> list[str]:
    """``@type`` may be a single name or a list of names."""
    types = item.get("@type")
    if isinstance(types, str):
        return [types]
    if isinstance(types, list):
        return [t for t in types if isinstance(t, str)]
    return []


def _iso_date(value: Any) -> str | None:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).isoformat()
    except ValueError:
        return None


Capability = Callable[[str], Awaitable[Any]]


class DelegateExtractor(ContentExtractor):
    """
    Delegate extraction to an external semantic capability.

    The capability receives the raw markup and must return ``{"title": str,
    "content": str}`` (a mapping or its JSON encoding), content being plain
    text with paragraph breaks preserved.
    """

    name = "delegate"

    def __init__(self, capability: Capability):
        self.capability = capability

    async def extract(self, markup: str, url: str | None = None) -> ExtractedPost:
        if not markup or not markup.strip():
            raise ExtractionError("Empty document")
        try:
            result = await self.capability(markup)
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(f"Semantic extraction failed: {e}") from e

        if isinstance(result, (str, bytes)):
            try:
                result = json.loads(result)
            except json.JSONDecodeError as e:
                raise ExtractionError("Semantic extraction returned invalid JSON") from e
        if not isinstance(result, dict):
            raise ExtractionError("Semantic extraction returned no object")

        title = result.get("title")
        content = result.get("content")
        if not isinstance(title, str) or not title.strip():
            raise ExtractionError("Semantic extraction returned no title")
        content = normalize_text(content) if isinstance(content, str) else ""
        if not content:
            raise ExtractionError("Semantic extraction returned no content")

        return ExtractedPost(title=title.strip(), content=content, url=url)
