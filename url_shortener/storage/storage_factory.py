"""
Storage factory – switch record store from config (lazy env version)
===================================================================

This module centralizes selection of the record store (in-memory vs DB)
so the rest of the app can stay ignorant of where data lives.

- Reads environment **at call time** to avoid stale values in tests.
- Imports the DB backend **only if** the selected backend is "postgres".

Environment variables
---------------------
- SHORTENER_STORAGE_BACKEND: "memory" (default) or "postgres"
- SHORTENER_DB_DSN:          DSN string if backend=="postgres"
"""

import logging
import os
from typing import Optional

from url_shortener.storage.base import BaseStorage
from url_shortener.storage.storage import Storage

log = logging.getLogger(__name__)


def get_storage(backend: Optional[str] = None, **kwargs) -> BaseStorage:
    """
    Return a record store based on configuration.

    Parameters
    ----------
    backend : str, optional
        "memory" (default) or "postgres". If omitted, reads SHORTENER_STORAGE_BACKEND.
    kwargs : dict
        Extra args for the backend. For postgres, use dsn="...".

    Returns
    -------
    BaseStorage
    """
    be = (backend or os.getenv("SHORTENER_STORAGE_BACKEND", "memory")).strip().lower()
    log.debug("Selected storage backend: %r", be)

    if be == "memory":
        return Storage()

    if be == "postgres":
        dsn = kwargs.get("dsn") or os.getenv("SHORTENER_DB_DSN", "")
        if not dsn:
            raise ValueError("DB_DSN is required for postgres backend (env SHORTENER_DB_DSN)")
        from url_shortener.storage.db_storage import DBStorage
        return DBStorage(dsn=dsn)

    raise ValueError(f"Unknown storage backend: {be!r}")
