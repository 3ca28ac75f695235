"""External collaborator adapters."""

from post_exporter.adapters.content_fetcher import (
    ContentFetcher,
    HttpContentFetcher,
    RawContent,
)

__all__ = [
    "ContentFetcher",
    "HttpContentFetcher",
    "RawContent",
]
