"""
Error taxonomy for the URL shortener core.

Classes:
    ShortenerError:
        Base class. Carries a `status_code` hint so a transport can map the
        error to a response without importing HTTP types into the core.

    ValidationError:
        Malformed input (client's fault).

    NotFoundError:
        No record has the requested short code.

    CodeExhaustionError:
        The retry budget ran out before a free code was found. Signals
        pressure on the code space and is worth alerting on.

    DuplicateCodeError:
        The store rejected an insert because the short code is taken.
        Internal: the engine retries on it and never lets it escape `shorten`.

    StoreUnavailableError:
        The record store could not be reached or failed mid-operation.
        Surfaced to the caller, never retried by the core.

Example:
    >>> from url_shortener.exceptions import NotFoundError
    >>> raise NotFoundError("Short URL not found")
    Traceback (most recent call last):
        ...
    url_shortener.exceptions.NotFoundError: Short URL not found
"""

from typing import Optional

__all__ = [
    "ShortenerError",
    "ValidationError",
    "NotFoundError",
    "CodeExhaustionError",
    "DuplicateCodeError",
    "StoreUnavailableError",
]


class ShortenerError(Exception):
    """Generic base class for URL shortener errors."""

    status_code: int = 500


class ValidationError(ShortenerError):
    """Raised when an input (URL, page, limit) is malformed."""

    status_code = 400


class NotFoundError(ShortenerError):
    """Raised when no record exists for a short code."""

    status_code = 404


class CodeExhaustionError(ShortenerError):
    """Raised when no free short code was found within the retry budget."""

    status_code = 500

    def __init__(self, attempts: int, message: Optional[str] = None):
        self.attempts = attempts
        super().__init__(message or f"Failed to generate unique short URL after {attempts} attempts")


class DuplicateCodeError(ShortenerError):
    """Raised by a store when an insert collides on the short code."""

    status_code = 409

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(f"Short code '{short_code}' already exists")


class StoreUnavailableError(ShortenerError):
    """Raised when the record store fails (connection issues, timeouts, etc.)."""

    status_code = 503
