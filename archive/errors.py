class ArchiveError(Exception):
    """Base exception for search index and replay failures."""
    pass


class NetworkError(ArchiveError):
    """Raised when no usable HTTP response was received (transport failure, redirect loop)."""

    def __init__(self, url, reason=""):
        self.url = url
        self.reason = reason
        super().__init__(f"Network error for {url}: {reason}" if reason else f"Network error for {url}")


class FetchError(ArchiveError):
    """Raised when the replay service answers with a non-success status."""

    def __init__(self, status, url):
        self.status = status
        self.url = url
        super().__init__(f"HTTP error! status: {status} ({url})")


class SearchError(ArchiveError):
    """Raised when the index answers with a non-success status or unreadable JSON."""

    def __init__(self, status, reason=""):
        self.status = status
        self.reason = reason
        message = f"Search failed: {status}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
