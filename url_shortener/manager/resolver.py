"""
Resolver module for the URL shortener.

Responsibilities:
    - resolve: count an access and return the target (mutating)
    - lookup: return a record without touching its counter (read-only)
    - list_records: newest-first pages with the overall record count

`resolve` and `lookup` stay separate: the info view must never
inflate access counts.
"""

import logging
from typing import Optional

from url_shortener.exceptions import NotFoundError, ShortenerError, ValidationError
from url_shortener.models import Page, UrlRecord
from url_shortener.storage.base import BaseStorage
from url_shortener.telemetry.base import BaseTelemetry
from url_shortener.telemetry.telemetry import emit

log = logging.getLogger(__name__)

# Stores address rows with signed 64-bit offsets (PostgreSQL BIGINT).
MAX_OFFSET = 2**63 - 1


def _require_positive_int(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(f"{name} must be a positive integer")
    return value


class Resolver:
    """
    Read side of the service.

    Args:
        storage (BaseStorage): Record store providing atomic increments.
        telemetry (Optional[BaseTelemetry]): Best-effort event sink.
    """

    def __init__(self, storage: BaseStorage, telemetry: Optional[BaseTelemetry] = None):
        self.storage = storage
        self.telemetry = telemetry

    def resolve(self, short_code: str) -> UrlRecord:
        """
        Increment the access count for `short_code` and return the record after the increment.

        The increment and the read happen in one store call, so concurrent
        resolutions of the same code all land.

        Raises:
            NotFoundError: No record has this code.
            StoreUnavailableError: The store failed.
        """
        emit(self.telemetry, "info", "service", f"Resolve requested: {short_code!r}")
        try:
            record = self.storage.increment_access_count(short_code)
            if record is None:
                raise NotFoundError("Short URL not found")
        except ShortenerError as e:
            emit(self.telemetry, "error", "service", f"Error resolving {short_code!r}: {e}")
            raise

        emit(self.telemetry, "info", "service", f"Redirecting: {short_code} -> {record.original_url}")
        return record

    def lookup(self, short_code: str) -> UrlRecord:
        """
        Return the record for `short_code` without changing it.

        Raises:
            NotFoundError: No record has this code.
        """
        emit(self.telemetry, "info", "service", f"Lookup requested: {short_code!r}")
        try:
            record = self.storage.find_by_short_code(short_code)
            if record is None:
                raise NotFoundError("Short URL not found")
        except ShortenerError as e:
            emit(self.telemetry, "error", "service", f"Error retrieving URL info {short_code!r}: {e}")
            raise

        emit(self.telemetry, "info", "service", f"URL info retrieved: {short_code}")
        return record

    def list_records(self, page: int = 1, limit: int = 10) -> Page:
        """
        Return one page of records, newest first.

        Args:
            page (int): 1-based page number.
            limit (int): Page size.

        Returns:
            Page: `records` is empty for pages past the end; `total_count`
            always counts every record.

        Raises:
            ValidationError: page or limit is not a positive integer, or the
                window starts past the largest offset a store can address.
        """
        try:
            page = _require_positive_int("page", page)
            limit = _require_positive_int("limit", limit)
            skip = (page - 1) * limit
            if limit > MAX_OFFSET or skip > MAX_OFFSET:
                raise ValidationError("page and limit are out of range")
            records = self.storage.query_page(skip, limit)
            total = self.storage.count()
        except ShortenerError as e:
            emit(self.telemetry, "error", "service", f"Error retrieving URLs: {e}")
            raise

        emit(self.telemetry, "info", "service", f"Retrieved {len(records)} URLs (page {page})")
        return Page(records=list(records), total_count=total, page=page, limit=limit)
