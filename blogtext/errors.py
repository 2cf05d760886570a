"""Error taxonomy for the scraping pipeline.

Only a failed fetch of the initial page ends a run; every other error is
turned into a skip plus a warning status by the orchestrator.
"""


class BlogTextError(Exception):
    """Base class for all blogtext errors."""


class TransportExhausted(BlogTextError):
    """Every proxy route (and every retry on it) failed for one URL."""

    def __init__(self, url: str, reason: str = ""):
        self.url = url
        self.reason = reason
        message = f"Failed to fetch {url} after trying all proxy routes"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class FeedParseError(BlogTextError):
    """A feed body could not be parsed. Callers treat it as an empty feed."""

    def __init__(self, url: str, reason: str = ""):
        self.url = url
        super().__init__(f"Could not parse feed {url}: {reason}" if reason else f"Could not parse feed {url}")


class ExtractionError(BlogTextError):
    """No usable title/content could be produced for a single post."""


class InvalidInput(BlogTextError):
    """Malformed base URL or out-of-range limit, rejected before any network activity."""


class RunCancelled(BlogTextError):
    """Raised at a suspension point once the run's cancel token is set."""

    def __init__(self, message: str = "Run cancelled"):
        super().__init__(message)
