"""
Base storage interface for the URL shortener.

Purpose:
    Define a small, stable contract that multiple record stores
    (in-memory, PostgreSQL) can implement without requiring changes
    to the shortener engine or the resolver.

Atomicity contract:
    - `insert` is the final authority on short-code uniqueness. A second
      insert with a code already in use raises DuplicateCodeError; it never
      overwrites.
    - `increment_access_count` is a single atomic increment-and-fetch, so
      concurrent resolutions of the same code never lose an update.
    - There is no uniqueness requirement on `original_url`.

Errors:
    Implementations raise StoreUnavailableError when the backing store
    cannot be reached or fails mid-operation.

Testing & Coverage:
    These are abstract methods and are not executed directly in tests.
    They are annotated with `# pragma: no cover`.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from url_shortener.models import UrlRecord

__all__ = ["BaseStorage"]


class BaseStorage(ABC):
    """Abstract base class for record stores."""

    @abstractmethod  # pragma: no cover
    def find_by_original_url(self, original_url: str) -> Optional[UrlRecord]:
        """Return a record whose original URL matches exactly, or None."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def find_by_short_code(self, short_code: str) -> Optional[UrlRecord]:
        """Return the record for a short code, or None."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def insert(self, record: UrlRecord) -> UrlRecord:
        """
        Persist a new record.

        Returns:
            UrlRecord: The record as stored.

        Raises:
            DuplicateCodeError: If the short code is already in use.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def increment_access_count(self, short_code: str) -> Optional[UrlRecord]:
        """
        Atomically add 1 to a record's access count.

        Returns:
            Optional[UrlRecord]: The record after the increment, or None if
            the code does not exist.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def query_page(self, skip: int, limit: int) -> List[UrlRecord]:
        """Return up to `limit` records after skipping `skip`, newest first."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def count(self) -> int:
        """Return the total number of records."""
        raise NotImplementedError

    def ping(self) -> bool:
        """Return True when the store is reachable. In-process stores always are."""
        return True
