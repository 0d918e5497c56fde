"""
UrlManager module for the URL shortener.

The one object a transport adapter needs. It wires a ShortenerEngine and a
Resolver to the same store and telemetry sink and exposes the core operations
as plain-data calls:

    shorten(url) -> UrlRecord
    shorten_detailed(url) -> ShortenOutcome
    resolve(code) -> UrlRecord         (increments accessCount)
    lookup(code) -> UrlRecord          (read-only)
    list_records(page, limit) -> Page

Example:
    >>> from url_shortener.storage.storage import Storage
    >>> manager = UrlManager(storage=Storage())
    >>> rec = manager.shorten("https://example.com/docs")
    >>> manager.resolve(rec.short_code).access_count
    1
    >>> manager.lookup(rec.short_code).access_count
    1
"""

from typing import Optional

from url_shortener.models import Page, ShortenOutcome, UrlRecord
from url_shortener.storage.base import BaseStorage
from url_shortener.telemetry.base import BaseTelemetry
from .code_generators import BaseCodeGenerator
from .resolver import Resolver
from .shortener_engine import Clock, ShortenerEngine


class UrlManager:
    def __init__(
        self,
        storage: BaseStorage,
        generator: Optional[BaseCodeGenerator] = None,
        telemetry: Optional[BaseTelemetry] = None,
        max_attempts: Optional[int] = None,
        clock: Optional[Clock] = None,
    ):
        self.storage = storage
        self.telemetry = telemetry
        self.engine = ShortenerEngine(
            storage,
            generator=generator,
            telemetry=telemetry,
            max_attempts=max_attempts,
            clock=clock,
        )
        self.resolver = Resolver(storage, telemetry=telemetry)

    def shorten(self, original_url: str) -> UrlRecord:
        return self.engine.shorten(original_url)

    def shorten_detailed(self, original_url: str) -> ShortenOutcome:
        return self.engine.shorten_detailed(original_url)

    def resolve(self, short_code: str) -> UrlRecord:
        return self.resolver.resolve(short_code)

    def lookup(self, short_code: str) -> UrlRecord:
        return self.resolver.lookup(short_code)

    def list_records(self, page: int = 1, limit: int = 10) -> Page:
        return self.resolver.list_records(page, limit)

    def healthcheck(self) -> bool:
        """True when the record store answers."""
        return self.storage.ping()
