"""Shared fixtures: an in-memory transport and sample blog markup."""

from __future__ import annotations

import asyncio
import json

import pytest

from blogtext import set_quiet
from blogtext.config import ScrapeConfig
from blogtext.errors import TransportExhausted


@pytest.fixture(autouse=True)
def _quiet_consoles():
    set_quiet(True)
    yield
    set_quiet(False)


class FakeTransport:
    """Serves bodies from a dict; unknown URLs fail like an exhausted proxy chain."""

    def __init__(self, pages: dict[str, str] | None = None):
        self.pages = dict(pages or {})
        self.fetched: list[str] = []

    async def fetch(self, url: str, cancel=None) -> str:
        if cancel is not None:
            cancel.raise_if_cancelled()
        self.fetched.append(url)
        body = self.pages.get(url)
        if body is None:
            raise TransportExhausted(url, "not found")
        return body

    async def aclose(self) -> None:
        pass


def collect(scraper, request, cancel=None) -> list:
    """Run a scrape and return every event plus the outcome, in order."""
    events: list = []

    async def sink(event) -> None:
        events.append(event)

    asyncio.run(scraper.run(request, sink, cancel))
    return events


def article_page(title: str, paragraphs: list[str]) -> str:
    body = "".join(f"<p>{p}</p>" for p in paragraphs)
    return f"""<!DOCTYPE html>
<html>
<head><title>{title} | Example Blog</title></head>
<body>
  <header><nav><a href="/">Home</a><a href="/about">About</a></nav></header>
  <article>
    <h1 class="entry-title">{title}</h1>
    <div class="entry-content">{body}</div>
  </article>
  <div class="comments"><p>Great post!</p></div>
  <footer><p>Copyright Example</p></footer>
</body>
</html>
"""


def json_feed(items: list[dict]) -> str:
    return json.dumps({"version": "https://jsonfeed.org/version/1.1", "title": "Example", "items": items})


@pytest.fixture()
def config() -> ScrapeConfig:
    return ScrapeConfig(
        proxy_routes=("https://proxy-a.test/raw?url={url_encoded}",),
        backoff_seconds=0,
    )
