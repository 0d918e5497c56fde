"""
Telemetry sinks for the URL shortener.

Responsibilities:
    - Ship log events to an external log service over HTTP, off the request path
    - Fall back to the local logger whenever shipping fails
    - Provide local and in-memory sinks for development and tests

Sinks:
    HttpLogSink:      POSTs `TelemetryEvent.to_payload()` JSON with requests on a
                      small thread pool. Failures become a local fallback line.
    LoggingTelemetry: Writes events to the `url_shortener.telemetry` logger.
    InMemoryTelemetry: Appends events to a list.

`emit_safely` is what every core operation calls. Whatever a sink does
(raise, misbehave, be closed), the caller gets None back and carries on.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

import requests

from url_shortener.config import settings
from .base import BaseTelemetry, TelemetryEvent

log = logging.getLogger("url_shortener.telemetry")


def emit_safely(telemetry: Optional[BaseTelemetry], event: TelemetryEvent) -> None:
    """
    Record an event without ever affecting the caller.

    Args:
        telemetry (Optional[BaseTelemetry]): Sink, or None to only log locally.
        event (TelemetryEvent): Event to record.
    """
    if telemetry is None:
        log.log(event.log_level, event.fallback_line())
        return
    try:
        telemetry.record(event)
    except Exception as e:  # sink failures must never reach a core operation
        log.warning("Telemetry sink %s failed (%s); %s", type(telemetry).__name__, e, event.fallback_line())


def emit(telemetry: Optional[BaseTelemetry], level: str, package: str, message: str) -> None:
    """Shorthand for `emit_safely` with an event on the configured stack."""
    emit_safely(telemetry, TelemetryEvent(settings.TELEMETRY_STACK, level, package, message))


class LoggingTelemetry(BaseTelemetry):
    """Local sink: one log line per event at the event's level."""

    def record(self, event: TelemetryEvent) -> None:
        log.log(event.log_level, event.fallback_line())


class InMemoryTelemetry(BaseTelemetry):
    """
    Collect events in memory.

    Attributes:
        events (List[TelemetryEvent]): Recorded events, in order.
    """

    def __init__(self):
        self.events: List[TelemetryEvent] = []
        self._lock = threading.Lock()

    def record(self, event: TelemetryEvent) -> None:
        with self._lock:
            self.events.append(event)

    def messages(self, level: Optional[str] = None) -> List[str]:
        """Return recorded messages, optionally only those at `level`."""
        with self._lock:
            return [e.message for e in self.events if level is None or e.level == level]


class HttpLogSink(BaseTelemetry):
    """
    Ship events to an external log service.

    Each `record` submits one POST to a thread pool and returns immediately.
    The worker logs the fallback line locally on any transport error or
    non-2xx answer; nothing is re-raised.

    At most `max_pending` events are queued or in flight at once. While the
    service is slow or down and the backlog is full, new events go straight
    to the local fallback line instead of the queue.

    Parameters:
        url (str): Log service endpoint.
        token (str): Bearer token; omitted from headers when empty.
        timeout (float): Per-request timeout in seconds.
        max_workers (int): Size of the sending pool.
        max_pending (int): Cap on queued plus in-flight events.
    """

    def __init__(
        self,
        url: str,
        token: str = "",
        timeout: float = 2.0,
        max_workers: int = 2,
        max_pending: int = 1000,
    ):
        self.url = url
        self.timeout = timeout
        self.max_pending = max(1, max_pending)
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        if token:
            self.session.headers.update({"Authorization": f"Bearer {token}"})
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="telemetry")
        self._slots = threading.BoundedSemaphore(self.max_pending)
        self._closed = False

    def record(self, event: TelemetryEvent) -> None:
        if self._closed:
            log.log(event.log_level, event.fallback_line())
            return
        if not self._slots.acquire(blocking=False):
            log.log(event.log_level, event.fallback_line())
            return
        try:
            self._executor.submit(self._send, event)
        except RuntimeError:
            # executor shut down between the check and the submit
            self._slots.release()
            log.log(event.log_level, event.fallback_line())

    def _send(self, event: TelemetryEvent) -> None:
        try:
            resp = self.session.post(self.url, json=event.to_payload(), timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            log.warning("Failed to send log to external service: %s", e)
            log.log(event.log_level, event.fallback_line())
        finally:
            self._slots.release()

    def close(self, drain: bool = True) -> None:
        """
        Stop accepting events.

        With `drain=True` every queued event is still sent. With `drain=False`
        queued events are dropped and only the POSTs already in flight (each
        bounded by `timeout`) are waited for.
        """
        self._closed = True
        self._executor.shutdown(wait=True, cancel_futures=not drain)
        self.session.close()


def get_telemetry() -> BaseTelemetry:
    """
    Build the configured sink.

    Returns:
        BaseTelemetry: HttpLogSink when settings.TELEMETRY_URL is set,
        otherwise LoggingTelemetry.
    """
    if settings.TELEMETRY_URL:
        return HttpLogSink(
            url=settings.TELEMETRY_URL,
            token=settings.TELEMETRY_TOKEN,
            timeout=settings.TELEMETRY_TIMEOUT,
            max_pending=settings.TELEMETRY_MAX_PENDING,
        )
    return LoggingTelemetry()
