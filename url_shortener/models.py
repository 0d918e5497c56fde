"""
Plain data types shared by the core, the stores, and the transport.

Nothing here talks to storage or HTTP; records cross every boundary as these
frozen dataclasses.
"""

import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List

__all__ = ["UrlRecord", "Page", "ShortenOutcome"]


@dataclass(frozen=True)
class UrlRecord:
    """Represent a shortened URL mapping.

    Attributes:
        original_url (str):
            The long http/https URL the short code resolves to.
        short_code (str):
            Unique short identifier for the mapping.
        created_at (datetime):
            UTC timestamp set once when the record is created.
        access_count (int):
            Number of resolutions so far; never decreases.

    Example:
        >>> from datetime import datetime, timezone
        >>> rec = UrlRecord(
        ...     original_url="https://example.com/article/123",
        ...     short_code="aB3xY9kQ",
        ...     created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        ... )
        >>> rec.access_count
        0
    """
    original_url: str
    short_code: str
    created_at: datetime
    access_count: int = 0

    def with_access_count(self, access_count: int) -> "UrlRecord":
        return replace(self, access_count=access_count)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view using the service's wire field names."""
        return {
            "originalUrl": self.original_url,
            "shortUrl": self.short_code,
            "createdAt": self.created_at.isoformat(),
            "accessCount": self.access_count,
        }


@dataclass(frozen=True)
class Page:
    """One window of records, newest first, plus the overall record count."""
    records: List[UrlRecord] = field(default_factory=list)
    total_count: int = 0
    page: int = 1
    limit: int = 10

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.limit) if self.limit else 0


@dataclass(frozen=True)
class ShortenOutcome:
    """Result of a create call: the canonical record and whether it was minted now."""
    record: UrlRecord
    created: bool
