"""Locate and parse JSON Feed, RSS and Atom syndication feeds."""

import copy
import html
import json
from datetime import datetime
from email.utils import parsedate_to_datetime
from urllib.parse import urljoin, urlparse
from xml.etree import ElementTree as ET

from bs4 import BeautifulSoup

from .cleaner import html_to_text, normalize_text
from .config import ScrapeConfig
from .errors import FeedParseError
from .models import FeedDescriptor, FeedEntry, FeedFormat, PostReference

# <link type="..."> values announcing a feed
FEED_LINK_TYPES = {
    "application/feed+json": FeedFormat.JSON,
    "application/json": FeedFormat.JSON,
    "application/rss+xml": FeedFormat.RSS,
    "application/atom+xml": FeedFormat.ATOM,
}

# JSON first, then RSS/Atom
FORMAT_PRIORITY = {FeedFormat.JSON: 0, FeedFormat.RSS: 1, FeedFormat.ATOM: 1}

UNTITLED = "Untitled"


def resolve_url(href: str | None, base_url: str) -> str | None:
    """Resolve ``href`` against ``base_url``; None unless the result is an absolute http(s) URL."""
    if not href or not isinstance(href, str):
        return None
    href = href.strip()
    if not href or href.startswith(("#", "javascript:", "mailto:", "tel:", "data:")):
        return None
    try:
        absolute = urljoin(base_url, href)
        parsed = urlparse(absolute)
    except ValueError:
        # e.g. "http://[broken/x", an unterminated IPv6 host
        return None
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return absolute.split("#", 1)[0]


def well_known_feeds(base_url: str, config: ScrapeConfig | None = None) -> list[FeedDescriptor]:
    """Conventional feed locations, probed before any page fetch."""
    config = config or ScrapeConfig()
    feeds = [FeedDescriptor(FeedFormat.JSON, urljoin(base_url, p)) for p in config.json_feed_paths]
    feeds += [FeedDescriptor(FeedFormat.RSS, urljoin(base_url, p)) for p in config.rss_feed_paths]
    return feeds


def discover_feeds(markup: str, page_url: str) -> list[FeedDescriptor]:
    """Find feed links declared in a page's head, JSON feeds first."""
    soup = BeautifulSoup(markup, "lxml")
    scope = soup.head or soup

    feeds: list[FeedDescriptor] = []
    seen: set[str] = set()
    for link in scope.find_all("link", href=True):
        rel = link.get("rel") or []
        if isinstance(rel, str):
            rel = rel.split()
        if "alternate" not in [r.lower() for r in rel]:
            continue
        feed_type = (link.get("type") or "").split(";")[0].strip().lower()
        feed_format = FEED_LINK_TYPES.get(feed_type)
        if feed_format is None:
            continue
        url = resolve_url(link["href"], page_url)
        if url is None or url in seen:
            continue
        seen.add(url)
        feeds.append(FeedDescriptor(feed_format, url))

    return sorted(feeds, key=lambda f: FORMAT_PRIORITY[f.format])


def parse_feed(body: str, feed: FeedDescriptor) -> list[FeedEntry]:
    """Parse a feed body into entries; raises ``FeedParseError`` on malformed input."""
    if feed.format == FeedFormat.JSON:
        return parse_json_feed(body, feed.url)
    return parse_xml_feed(body, feed.url)


def _to_iso(value: str | None) -> str | None:
    """Normalize an RFC 822 or ISO 8601 date to ISO 8601; unparseable dates are kept as-is."""
    if not value or not isinstance(value, str):
        return None
    value = value.strip()
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).isoformat()
    except ValueError:
        pass
    try:
        return parsedate_to_datetime(value).isoformat()
    except (TypeError, ValueError, IndexError):
        return value


def _permalink_id(item_id) -> str | None:
    # ids are opaque strings; only absolute URLs can stand in for a permalink
    if not isinstance(item_id, str) or not item_id.strip().lower().startswith(("http://", "https://")):
        return None
    return resolve_url(item_id, item_id)


def parse_json_feed(body: str, feed_url: str) -> list[FeedEntry]:
    """Parse a JSON Feed (https://jsonfeed.org) document."""
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, TypeError) as e:
        raise FeedParseError(feed_url, str(e)) from e

    if not isinstance(data, dict) or not isinstance(data.get("items"), list):
        return []

    entries = []
    for item in data["items"]:
        if not isinstance(item, dict):
            continue
        url = (
            resolve_url(item.get("url"), feed_url)
            or resolve_url(item.get("external_url"), feed_url)
            or _permalink_id(item.get("id"))
        )
        if url is None:
            continue
        title = item.get("title")
        title = title.strip() if isinstance(title, str) and title.strip() else UNTITLED

        content = None
        if isinstance(item.get("content_html"), str):
            content = html_to_text(item["content_html"]) or None
        elif isinstance(item.get("content_text"), str):
            content = normalize_text(item["content_text"]) or None

        entries.append(FeedEntry(
            reference=PostReference(title=title, url=url),
            content=content,
            date=_to_iso(item.get("date_published") or item.get("date_modified")),
        ))

    return entries


def _local_name(tag) -> str:
    """Tag name without its XML namespace."""
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1].lower()


def _children(elem, name: str) -> list:
    return [child for child in elem if _local_name(child.tag) == name]


def _text(elem) -> str:
    return "".join(elem.itertext()).strip() if elem is not None else ""


def _entry_link(elem, feed_url: str) -> str | None:
    links = _children(elem, "link")
    # Atom: rel="alternate" (or no rel) points at the post itself
    links.sort(key=lambda link: 0 if link.get("rel") in (None, "alternate") else 1)
    for link in links:
        url = resolve_url(link.get("href"), feed_url) or resolve_url(_text(link), feed_url)
        if url:
            return url
    for guid in _children(elem, "guid"):
        if guid.get("isPermaLink", "true").lower() != "false":
            url = resolve_url(_text(guid), feed_url)
            if url:
                return url
    return None


def _xhtml_markup(elem) -> str:
    """Serialize inline Atom xhtml content back to markup, namespaces dropped."""
    parts = [html.escape(elem.text or "", quote=False)]
    for child in elem:
        child = copy.deepcopy(child)
        for node in child.iter():
            if isinstance(node.tag, str):
                node.tag = _local_name(node.tag)
        parts.append(ET.tostring(child, encoding="unicode"))
    return "".join(parts)


def _entry_content(elem) -> str | None:
    for name in ("encoded", "content"):
        for child in _children(elem, name):
            text = _text(child)
            if not text:
                continue
            if child.get("type") == "text":
                return normalize_text(text) or None
            if child.get("type") == "xhtml":
                return html_to_text(_xhtml_markup(child)) or None
            return html_to_text(text) or None
    return None


def _entry_date(elem) -> str | None:
    for name in ("pubdate", "published", "date", "updated"):
        for child in _children(elem, name):
            date = _to_iso(_text(child))
            if date:
                return date
    return None


def parse_xml_feed(body: str, feed_url: str) -> list[FeedEntry]:
    """Parse an RSS 2.0, RSS 1.0 (RDF) or Atom document."""
    try:
        root = ET.fromstring(body.strip())
    except ET.ParseError as e:
        raise FeedParseError(feed_url, str(e)) from e

    entries = []
    for elem in root.iter():
        if _local_name(elem.tag) not in ("item", "entry"):
            continue
        url = _entry_link(elem, feed_url)
        if url is None:
            continue
        title_elems = _children(elem, "title")
        title = _text(title_elems[0]) if title_elems else ""
        entries.append(FeedEntry(
            reference=PostReference(title=title or UNTITLED, url=url),
            content=_entry_content(elem),
            date=_entry_date(elem),
        ))

    return entries
