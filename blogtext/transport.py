"""Fetch resources through a prioritized chain of proxy relays."""

import asyncio
from urllib.parse import quote

import httpx
from rich.console import Console

from .cancel import CancelToken
from .config import ScrapeConfig
from .errors import TransportExhausted

console = Console(stderr=True)

ACCEPT_HEADER = "application/json, application/rss+xml, application/xml, text/xml, text/html, */*"


class ProxyRoute:
    """A relay template that rewrites a target URL into a proxied request URL."""

    def __init__(self, template: str):
        if "{url}" not in template and "{url_encoded}" not in template:
            raise ValueError(f"Proxy route template needs {{url}} or {{url_encoded}}: {template}")
        self.template = template

    def build(self, url: str) -> str:
        return self.template.replace("{url_encoded}", quote(url, safe="")).replace("{url}", url)

    def __repr__(self) -> str:
        return f"ProxyRoute({self.template!r})"


class Transport:
    """
    Resilient fetcher.

    Routes are tried in order. A 5xx or network error retries the same route
    with linear back-off; a 4xx, an empty body or exhausted retries moves on
    to the next route. Only when every route failed is ``TransportExhausted``
    raised.
    """

    def __init__(
        self,
        config: ScrapeConfig | None = None,
        client: httpx.AsyncClient | None = None,
        sleep=asyncio.sleep,
    ):
        self.config = config or ScrapeConfig()
        self.routes = [ProxyRoute(t) for t in self.config.proxy_routes]
        if not self.routes:
            raise ValueError("At least one proxy route is required")
        self._client = client
        self._owns_client = client is None
        self._sleep = sleep

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                follow_redirects=True,
                timeout=self.config.timeout,
                headers={"User-Agent": self.config.user_agent, "Accept": ACCEPT_HEADER},
            )
        return self._client

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def fetch(self, url: str, cancel: CancelToken | None = None) -> str:
        """Return the first non-empty successful body for ``url``."""
        cancel = cancel or CancelToken()
        attempts = self.config.max_retries + 1
        last_problem = ""

        for index, route in enumerate(self.routes, start=1):
            proxied = route.build(url)
            for attempt in range(1, attempts + 1):
                retryable = False
                try:
                    response = await cancel.guard(
                        self.client.get(
                            proxied,
                            headers={"Accept": ACCEPT_HEADER},
                            timeout=self.config.timeout,
                        )
                    )
                except httpx.HTTPError as e:
                    last_problem = f"network error: {e.__class__.__name__}"
                    retryable = True
                else:
                    status = response.status_code
                    if status >= 500:
                        last_problem = f"HTTP {status}"
                        retryable = True
                    elif not response.is_success:
                        last_problem = f"HTTP {status}"
                    elif not response.text.strip():
                        last_problem = "empty response"
                    else:
                        return response.text

                if not retryable or attempt == attempts:
                    console.print(
                        f"[dim]Proxy route {index} failed for {url} ({last_problem}), trying next route[/dim]"
                    )
                    break

                wait_time = self.config.backoff_seconds * attempt
                console.print(
                    f"[dim]Proxy route {index} attempt {attempt} failed ({last_problem}), "
                    f"retrying in {wait_time:.1f}s[/dim]"
                )
                if wait_time > 0:
                    await cancel.guard(self._sleep(wait_time))
                else:
                    cancel.raise_if_cancelled()

        raise TransportExhausted(url, last_problem)
