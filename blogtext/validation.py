"""Request validation and URL normalization."""

import re
from urllib.parse import urlparse, urlunparse

from .config import MAX_POST_LIMIT
from .errors import InvalidInput
from .models import ScrapeRequest


def normalize_url(url: str) -> str:
    """
    Normalize user-typed blog URL.

    Adds ``https://`` when no scheme is given and a trailing slash to
    directory-like paths, so relative feed paths resolve inside the blog.
    """
    url = (url or "").strip()
    if not url:
        raise InvalidInput("Please enter a URL")
    if not re.match(r"^[a-z][a-z0-9+.-]*://", url, re.IGNORECASE):
        url = f"https://{url}"

    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise InvalidInput(f"Please enter a valid URL: {e}") from e
    path = parsed.path or "/"
    last_segment = path.rsplit("/", 1)[-1]
    if not path.endswith("/") and "." not in last_segment and not parsed.query:
        path = path + "/"
    return urlunparse(parsed._replace(path=path, fragment=""))


def validate_request(request: ScrapeRequest, max_post_limit: int = MAX_POST_LIMIT) -> ScrapeRequest:
    """Reject malformed base URLs and out-of-range limits before any network activity."""
    base_url = request.base_url
    if not isinstance(base_url, str) or not base_url.strip():
        raise InvalidInput("Please enter a URL")

    try:
        parsed = urlparse(base_url.strip())
    except ValueError as e:
        raise InvalidInput(f"Please enter a valid HTTP or HTTPS URL: {base_url!r}") from e
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidInput(f"Please enter a valid HTTP or HTTPS URL: {base_url!r}")

    limit = request.limit
    if limit is not None:
        if isinstance(limit, bool) or not isinstance(limit, int):
            raise InvalidInput(f"Limit must be a whole number, got {limit!r}")
        if max_post_limit and limit > max_post_limit:
            raise InvalidInput(f"Limit cannot exceed {max_post_limit} posts")

    return ScrapeRequest(base_url=base_url.strip(), limit=limit)
