"""
Abstract base class and event type for telemetry sinks.

Responsibilities:
    - Define the single `record(event)` call the core makes
    - Support easy substitution (external log service, local logger, in-memory)

A sink may block, raise, or be down; callers go through `emit_safely` in
`telemetry.py`, which never lets any of that reach a core operation.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict

__all__ = ["BaseTelemetry", "TelemetryEvent", "LEVELS"]

LEVELS: Dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
}


@dataclass(frozen=True)
class TelemetryEvent:
    """
    One log event destined for the external log service.

    Attributes:
        stack (str): Emitting stack, e.g. "backend".
        level (str): "debug", "info", "warn", "error" or "fatal".
        package (str): Emitting area, e.g. "handler", "service", "middleware".
        message (str): Human-readable text.
    """
    stack: str
    level: str
    package: str
    message: str

    def to_payload(self) -> Dict[str, str]:
        return {
            "stack": self.stack,
            "level": self.level,
            "package": self.package,
            "message": self.message,
        }

    def fallback_line(self) -> str:
        return f"[{self.level.upper()}] [{self.stack}] [{self.package}]: {self.message}"

    @property
    def log_level(self) -> int:
        return LEVELS.get(self.level.lower(), logging.INFO)


class BaseTelemetry(ABC):
    """Abstract base for pluggable telemetry sinks."""

    @abstractmethod
    def record(self, event: TelemetryEvent) -> None:  # pragma: no cover
        """
        Hand an event to the sink. Best-effort; must not block on network I/O.

        Args:
            event (TelemetryEvent): The event to record.
        """
        raise NotImplementedError

    def close(self, drain: bool = True) -> None:
        """Release background resources. Default: nothing to release.

        Args:
            drain (bool): Deliver events still queued before returning. Pass
                False on shutdown to drop them instead.
        """
        return None
