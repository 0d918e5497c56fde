"""
Unit tests for Resolver (resolve, lookup, list_records).
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from url_shortener.exceptions import NotFoundError, StoreUnavailableError, ValidationError
from url_shortener.manager.resolver import Resolver
from url_shortener.models import UrlRecord

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def resolver(storage, telemetry):
    return Resolver(storage, telemetry=telemetry)


@pytest.fixture
def seeded(storage):
    storage.insert(UrlRecord("https://example.com", "abc123", T0))
    return "abc123"


def test_resolve_increments_and_returns_post_increment_record(resolver, seeded):
    first = resolver.resolve(seeded)
    second = resolver.resolve(seeded)
    assert first.original_url == "https://example.com"
    assert first.access_count == 1
    assert second.access_count == 2


def test_lookup_is_read_only(resolver, storage, seeded):
    for _ in range(3):
        resolver.resolve(seeded)
    for _ in range(5):
        assert resolver.lookup(seeded).access_count == 3
    assert storage.find_by_short_code(seeded).access_count == 3


@pytest.mark.parametrize("op", ["resolve", "lookup"])
def test_unknown_code_not_found(resolver, telemetry, op):
    with pytest.raises(NotFoundError, match="Short URL not found"):
        getattr(resolver, op)("doesnotexist")
    assert telemetry.messages("error")


def test_resolve_store_failure_propagates(resolver, storage):
    with patch.object(storage, "increment_access_count", side_effect=StoreUnavailableError("down")):
        with pytest.raises(StoreUnavailableError):
            resolver.resolve("abc123")


def test_resolve_telemetry(resolver, telemetry, seeded):
    resolver.resolve(seeded)
    assert telemetry.messages("info")[-1] == "Redirecting: abc123 -> https://example.com"


# -------------------------
# Listing
# -------------------------

@pytest.fixture
def twenty_five(storage):
    for i in range(25):
        storage.insert(UrlRecord(f"https://e.com/{i}", f"code{i:02d}", T0 + timedelta(seconds=i)))


def test_list_first_page(resolver, twenty_five):
    page = resolver.list_records(page=1, limit=10)
    assert len(page.records) == 10
    assert page.total_count == 25
    assert page.total_pages == 3
    created = [r.created_at for r in page.records]
    assert created == sorted(created, reverse=True)
    assert page.records[0].short_code == "code24"


def test_list_last_and_past_end(resolver, twenty_five):
    third = resolver.list_records(page=3, limit=10)
    assert [r.short_code for r in third.records] == ["code04", "code03", "code02", "code01", "code00"]
    fourth = resolver.list_records(page=4, limit=10)
    assert fourth.records == []
    assert fourth.total_count == 25


def test_list_empty_store(resolver):
    page = resolver.list_records()
    assert page.records == [] and page.total_count == 0 and page.total_pages == 0


@pytest.mark.parametrize("page,limit", [(0, 10), (1, 0), (-1, 10), ("1", 10), (1, 2.5), (True, 10)])
def test_list_rejects_bad_window(resolver, page, limit):
    with pytest.raises(ValidationError):
        resolver.list_records(page=page, limit=limit)


@pytest.mark.parametrize("page,limit", [(2**62, 10), (10**30, 1), (1, 2**63)])
def test_list_rejects_window_past_addressable_offset(resolver, storage, page, limit):
    with patch.object(storage, "query_page") as query_page:
        with pytest.raises(ValidationError, match="out of range"):
            resolver.list_records(page=page, limit=limit)
    query_page.assert_not_called()


def test_list_accepts_largest_addressable_offset(resolver, twenty_five):
    page = resolver.list_records(page=2**62, limit=2)
    assert page.records == []
    assert page.total_count == 25
