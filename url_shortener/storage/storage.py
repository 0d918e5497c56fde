"""
Storage module for the URL shortener (in-memory implementation).

Responsibilities:
    - Hold UrlRecords keyed by short code
    - Keep a secondary index from original URL to short code
    - Enforce short-code uniqueness on insert
    - Provide atomic access-count increments
    - Serve newest-first pages for listing

Design:
    - This is the reference implementation of the BaseStorage contract.
    - A single lock makes each method atomic, which is exactly the guarantee a
      database gives the engine through its unique index and single-statement
      UPDATE. No lock is ever held between two calls.
    - It keeps unit/integration tests fast and deterministic.
"""

import itertools
import threading
from typing import Dict, List, Optional, Tuple

from url_shortener.exceptions import DuplicateCodeError
from url_shortener.models import UrlRecord
from .base import BaseStorage


class Storage(BaseStorage):
    def __init__(self):
        """
        Initialize empty storage.

        Internal schema:
            self.records = { short_code: UrlRecord }
            self.by_url  = { original_url: short_code }   # first record wins
            self._order  = { short_code: insertion sequence number }
        """
        self.records: Dict[str, UrlRecord] = {}
        self.by_url: Dict[str, str] = {}
        self._order: Dict[str, int] = {}
        self._seq = itertools.count()
        self._lock = threading.Lock()

    def find_by_original_url(self, original_url: str) -> Optional[UrlRecord]:
        with self._lock:
            code = self.by_url.get(original_url)
            return self.records.get(code) if code is not None else None

    def find_by_short_code(self, short_code: str) -> Optional[UrlRecord]:
        with self._lock:
            return self.records.get(short_code)

    def insert(self, record: UrlRecord) -> UrlRecord:
        """
        Insert a new record.

        Rules:
            - A short code already present is rejected with DuplicateCodeError,
              even when it maps to the same URL.
            - The URL index keeps the first record for a URL; a racing
              duplicate is stored but the earlier one stays canonical.
        """
        with self._lock:
            if record.short_code in self.records:
                raise DuplicateCodeError(record.short_code)
            self.records[record.short_code] = record
            self.by_url.setdefault(record.original_url, record.short_code)
            self._order[record.short_code] = next(self._seq)
            return record

    def increment_access_count(self, short_code: str) -> Optional[UrlRecord]:
        with self._lock:
            current = self.records.get(short_code)
            if current is None:
                return None
            updated = current.with_access_count(current.access_count + 1)
            self.records[short_code] = updated
            return updated

    def query_page(self, skip: int, limit: int) -> List[UrlRecord]:
        with self._lock:
            ordered = sorted(self.records.values(), key=self._sort_key, reverse=True)
        return ordered[skip:skip + limit]

    def count(self) -> int:
        with self._lock:
            return len(self.records)

    def _sort_key(self, record: UrlRecord) -> Tuple:
        # Insertion order breaks ties between identical timestamps.
        return (record.created_at, self._order[record.short_code])
