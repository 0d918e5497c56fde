"""
read_load.py request helpers against a live app instance (in-process, via
httpx.ASGITransport), so both resolve paths count accesses.
"""

import asyncio

import httpx
import pytest

import read_load
from main import create_app

BASE = "http://shortener.test"


def _run(manager, code, mode):
    async def go():
        transport = httpx.ASGITransport(app=create_app(manager=manager))
        async with httpx.AsyncClient(transport=transport) as client:
            return await read_load._hit_one(client, BASE, code, mode)

    return asyncio.run(go())


@pytest.mark.parametrize("mode", ["api", "browser"])
def test_each_mode_resolves_and_counts(manager, mode):
    code = manager.shorten("https://example.com/load").short_code

    assert _run(manager, code, mode) == (mode, True)
    assert manager.lookup(code).access_count == 1


def test_mixed_mode_picks_one_path(manager):
    code = manager.shorten("https://example.com/load").short_code

    picked, ok = _run(manager, code, "mixed")
    assert picked in ("api", "browser")
    assert ok is True


@pytest.mark.parametrize("mode", ["api", "browser"])
def test_unknown_code_is_a_failure(manager, mode):
    assert _run(manager, "doesnotexist", mode) == (mode, False)
