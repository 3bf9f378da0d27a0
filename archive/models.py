import re
from dataclasses import dataclass
from typing import Any, Optional

_TIMESTAMP_RE = re.compile(r"\d{14}")


def to_archive_timestamp(value: Any) -> Optional[str]:
    """
    Normalize an index date into the 14-digit YYYYMMDDHHMMSS replay form.
    Accepts the numeric wayback_date the index returns as well as ISO-8601
    crawl dates ("2020-01-01T12:00:00Z"). Returns None when no 14 digits can
    be recovered.
    """
    if value is None:
        return None
    digits = re.sub(r"\D", "", str(value))[:14]
    if not _TIMESTAMP_RE.fullmatch(digits):
        return None
    return digits


@dataclass(frozen=True)
class MementoReference:
    """
    A single archived capture: (timestamp, original URL).
    INVARIANT: archive_timestamp is exactly 14 digits.
    """
    archive_timestamp: str
    original_url: str

    def __post_init__(self):
        if not _TIMESTAMP_RE.fullmatch(self.archive_timestamp or ""):
            raise ValueError(f"archive timestamp must be 14 digits, got {self.archive_timestamp!r}")
        if not self.original_url:
            raise ValueError("original_url must not be empty")


@dataclass(frozen=True)
class FetchedMemento:
    """
    Raw replay response held in MEMORY.

    INVARIANT: This object is TRANSIENT.
    It is consumed once by the rewriter and then discarded.
    canonical_url is the replay service's final URL after redirects, and is
    the base every relative link in raw_html resolves against.
    """
    raw_html: str
    canonical_url: str
    requested_url: str = ""
    http_status: int = 200
    content_type: str = ""


@dataclass(frozen=True)
class SearchHit:
    """One index match, in the relevance order the index returned it."""
    identifier: str
    original_url: str
    capture_timestamp: str
    content_type: str = ""
    display_date: str = ""

    def reference(self) -> MementoReference:
        return MementoReference(
            archive_timestamp=self.capture_timestamp,
            original_url=self.original_url,
        )
