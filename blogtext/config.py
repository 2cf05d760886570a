"""Runtime configuration.

Defaults live in module-level constants; ``ScrapeConfig.from_env()`` lets the
CLI and the web app override them with ``BLOGTEXT_*`` environment variables.
"""

import os
from dataclasses import dataclass, field

# Public relays, ordered by perceived reliability. ``{url}`` is the raw target,
# ``{url_encoded}`` the percent-encoded one for relays taking a query param.
DEFAULT_PROXY_ROUTES = (
    "https://thingproxy.freeboard.io/fetch/{url}",
    "https://cors.eu.org/{url}",
    "https://api.allorigins.win/raw?url={url_encoded}",
    "https://corsproxy.io/?{url_encoded}",
)

DEFAULT_TIMEOUT = 30.0  # seconds per request
DEFAULT_MAX_RETRIES = 2  # extra attempts on the same route after a 5xx/network error
DEFAULT_BACKOFF = 1.0  # seconds, multiplied by the attempt number
DEFAULT_USER_AGENT = "blogtext/0.1.0 (article extractor)"

JSON_FEED_PATHS = ("f.json",)
RSS_FEED_PATHS = ("f.rss",)

MAX_INDEX_PAGES = 50
MAX_POST_LIMIT = 1000

DEFAULT_LLM_BASE_URL = "https://api.openai.com/v1"
DEFAULT_LLM_MODEL = "gpt-4o-mini"
DEFAULT_LLM_MAX_CHARS = 60000


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ScrapeConfig:
    """All knobs of a scraping run."""
    proxy_routes: tuple[str, ...] = DEFAULT_PROXY_ROUTES
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    backoff_seconds: float = DEFAULT_BACKOFF
    user_agent: str = DEFAULT_USER_AGENT
    json_feed_paths: tuple[str, ...] = JSON_FEED_PATHS
    rss_feed_paths: tuple[str, ...] = RSS_FEED_PATHS
    max_index_pages: int = MAX_INDEX_PAGES
    max_post_limit: int = MAX_POST_LIMIT
    refetch_inline_content: bool = False

    # Delegate (semantic) extraction
    llm_base_url: str = DEFAULT_LLM_BASE_URL
    llm_api_key: str | None = field(default=None, repr=False)
    llm_model: str = DEFAULT_LLM_MODEL
    llm_max_chars: int = DEFAULT_LLM_MAX_CHARS

    @classmethod
    def from_env(cls, environ: dict | None = None, **overrides) -> "ScrapeConfig":
        """Build a config from ``BLOGTEXT_*`` variables; keyword overrides win."""
        env = os.environ if environ is None else environ
        values: dict = {}

        routes = env.get("BLOGTEXT_PROXY_ROUTES")
        if routes:
            values["proxy_routes"] = tuple(r.strip() for r in routes.split(",") if r.strip())
        if env.get("BLOGTEXT_TIMEOUT"):
            values["timeout"] = float(env["BLOGTEXT_TIMEOUT"])
        if env.get("BLOGTEXT_MAX_RETRIES"):
            values["max_retries"] = int(env["BLOGTEXT_MAX_RETRIES"])
        if env.get("BLOGTEXT_BACKOFF"):
            values["backoff_seconds"] = float(env["BLOGTEXT_BACKOFF"])
        if env.get("BLOGTEXT_MAX_PAGES"):
            values["max_index_pages"] = int(env["BLOGTEXT_MAX_PAGES"])
        if env.get("BLOGTEXT_REFETCH_INLINE"):
            values["refetch_inline_content"] = _env_bool(env["BLOGTEXT_REFETCH_INLINE"])

        if env.get("BLOGTEXT_LLM_BASE_URL"):
            values["llm_base_url"] = env["BLOGTEXT_LLM_BASE_URL"]
        api_key = env.get("BLOGTEXT_LLM_API_KEY") or env.get("OPENAI_API_KEY")
        if api_key:
            values["llm_api_key"] = api_key
        if env.get("BLOGTEXT_LLM_MODEL"):
            values["llm_model"] = env["BLOGTEXT_LLM_MODEL"]

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
