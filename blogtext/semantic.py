"""Semantic extraction backend for ``DelegateExtractor``.

Talks to any OpenAI-compatible ``/chat/completions`` endpoint and asks for a
strict JSON object ``{"title": ..., "content": ...}``.
"""

import json

import httpx
from bs4 import BeautifulSoup

from .config import ScrapeConfig
from .errors import ExtractionError
from .extractor import DelegateExtractor

SYSTEM_PROMPT = (
    "You extract blog articles from raw HTML. Reply with a JSON object with exactly two keys: "
    '"title" (string, the article headline) and "content" (string, the full article body as '
    "plain text, paragraphs separated by a blank line). Leave out navigation, comments, "
    "sharing widgets, footers and any text that is not part of the article."
)


def prepare_markup(markup: str, max_chars: int) -> str:
    """Drop scripts and styles, then cut the markup to ``max_chars``."""
    soup = BeautifulSoup(markup, "lxml")
    for tag in soup.find_all(["script", "style", "noscript", "svg", "template", "link", "meta"]):
        tag.decompose()
    body = soup.body or soup
    return str(body)[:max_chars]


class ChatCompletionsCapability:
    """Callable capability: ``await capability(markup) -> dict``."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        max_chars: int,
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.endpoint = base_url.rstrip("/") + "/chat/completions"
        self.max_chars = max_chars
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_config(cls, config: ScrapeConfig, client: httpx.AsyncClient | None = None) -> "ChatCompletionsCapability":
        if not config.llm_api_key:
            raise ValueError("Semantic extraction needs BLOGTEXT_LLM_API_KEY (or OPENAI_API_KEY)")
        return cls(
            api_key=config.llm_api_key,
            model=config.llm_model,
            base_url=config.llm_base_url,
            max_chars=config.llm_max_chars,
            client=client,
        )

    async def __call__(self, markup: str) -> dict:
        payload = {
            "model": self.model,
            "temperature": 0,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prepare_markup(markup, self.max_chars)},
            ],
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        if self._client is not None:
            response = await self._client.post(self.endpoint, json=payload, headers=headers, timeout=self.timeout)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.endpoint, json=payload, headers=headers)
        response.raise_for_status()

        try:
            message = response.json()["choices"][0]["message"]["content"]
            return json.loads(message)
        except (KeyError, IndexError, TypeError, json.JSONDecodeError) as e:
            raise ExtractionError(f"Unexpected semantic extraction response: {e}") from e


def semantic_extractor(config: ScrapeConfig, client: httpx.AsyncClient | None = None) -> DelegateExtractor:
    """Build a ``DelegateExtractor`` backed by the configured chat-completions endpoint."""
    return DelegateExtractor(ChatCompletionsCapability.from_config(config, client=client))
