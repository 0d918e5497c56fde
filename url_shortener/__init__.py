"""
url_shortener package initializer.
"""

from . import manager
from . import storage
from . import telemetry

__all__ = ["manager", "storage", "telemetry"]
