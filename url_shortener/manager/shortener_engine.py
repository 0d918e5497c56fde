"""
ShortenerEngine module for the URL shortener.

Responsibilities:
    - Validate long URLs (http/https only)
    - Return the existing record for an already-shortened URL (idempotent create)
    - Mint a fresh code through a bounded retry loop
    - Insert the new record, retrying when the store reports a code collision

Design notes:
    - Check-then-insert is racy by nature. The store's unique constraint on the
      short code is the final authority; the pre-insert lookup only keeps the
      common-case retry count at zero.
    - Every generated candidate costs one attempt, whether it was rejected by
      the lookup or by the insert. After `max_attempts` the engine raises
      CodeExhaustionError instead of looping forever on a saturated code space.
    - Two callers creating the same brand-new URL at the same moment can both
      miss the lookup and insert two records. The first one stays canonical for
      later lookups; no unique constraint exists on the long URL.
    - Stateless between calls: all state lives in the injected store.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Callable, Optional

from url_shortener.config import settings
from url_shortener.exceptions import CodeExhaustionError, DuplicateCodeError, ShortenerError, ValidationError
from url_shortener.models import ShortenOutcome, UrlRecord
from url_shortener.storage.base import BaseStorage
from url_shortener.telemetry.base import BaseTelemetry
from url_shortener.telemetry.telemetry import emit
from .code_generators import BaseCodeGenerator, get_generator_from_config

log = logging.getLogger(__name__)

URL_PATTERN = re.compile(r"^https?://.+")

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_url(original_url) -> str:
    """
    Check that the URL is a non-empty http/https string.

    Raises:
        ValidationError: If the URL is missing or malformed.
    """
    if not isinstance(original_url, str) or not original_url:
        raise ValidationError("originalUrl is required")
    if not URL_PATTERN.match(original_url):
        raise ValidationError("Invalid URL format. Must be a valid HTTP or HTTPS URL")
    return original_url


class ShortenerEngine:
    """
    Coordinates lookup-or-create for long URLs.

    Args:
        storage (BaseStorage): Record store (the uniqueness authority).
        generator (Optional[BaseCodeGenerator]): Candidate code source; from config when omitted.
        telemetry (Optional[BaseTelemetry]): Best-effort event sink.
        max_attempts (Optional[int]): Retry budget; settings.MAX_ATTEMPTS when omitted.
        clock (Optional[Clock]): Returns the creation timestamp; UTC now by default.
    """

    def __init__(
        self,
        storage: BaseStorage,
        generator: Optional[BaseCodeGenerator] = None,
        telemetry: Optional[BaseTelemetry] = None,
        max_attempts: Optional[int] = None,
        clock: Optional[Clock] = None,
    ):
        self.storage = storage
        self.generator = generator or get_generator_from_config()
        self.telemetry = telemetry
        self.max_attempts = max(1, int(max_attempts if max_attempts is not None else settings.MAX_ATTEMPTS))
        self.clock = clock or utcnow

    def shorten(self, original_url: str) -> UrlRecord:
        """
        Return the canonical record for `original_url`, creating it if needed.

        Raises:
            ValidationError: Empty or non-http(s) URL.
            CodeExhaustionError: No free code within the retry budget.
            StoreUnavailableError: The store failed.
        """
        return self.shorten_detailed(original_url).record

    def shorten_detailed(self, original_url: str) -> ShortenOutcome:
        """Same as `shorten`, but also reports whether a new record was minted."""
        emit(self.telemetry, "info", "service", f"Shorten requested: {original_url!r}")
        try:
            validate_url(original_url)

            existing = self.storage.find_by_original_url(original_url)
            if existing is not None:
                emit(self.telemetry, "info", "service", f"URL already shortened: {original_url}")
                return ShortenOutcome(record=existing, created=False)

            record = self._create(original_url)
        except ShortenerError as e:
            emit(self.telemetry, "error", "service", f"Error shortening URL {original_url!r}: {e}")
            raise

        emit(
            self.telemetry, "info", "service",
            f"URL shortened successfully: {original_url} -> {record.short_code}",
        )
        return ShortenOutcome(record=record, created=True)

    def _create(self, original_url: str) -> UrlRecord:
        for attempt in range(1, self.max_attempts + 1):
            candidate = self.generator.generate()
            if self.storage.find_by_short_code(candidate) is not None:
                log.debug("Short code %s already in use (attempt %d/%d)", candidate, attempt, self.max_attempts)
                continue

            record = UrlRecord(
                original_url=original_url,
                short_code=candidate,
                created_at=self.clock(),
                access_count=0,
            )
            try:
                return self.storage.insert(record)
            except DuplicateCodeError:
                log.info("Lost insert race on short code %s (attempt %d/%d)", candidate, attempt, self.max_attempts)
                continue

        log.error("Code space exhausted: no free short code after %d attempts", self.max_attempts)
        raise CodeExhaustionError(self.max_attempts)
