class ConfigurationError(ValueError):
    """Raised when a crawl configuration cannot be used; surfaced before any work starts."""


class FetchError(Exception):
    """Raised when a single document cannot be fetched or parsed."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Fetch failed for {url}: {reason}")
