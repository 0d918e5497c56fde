"""
Integration tests for the HTTP surface in main.py.

Each test gets its own app (see conftest.client), so records never leak
between tests.
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from main import create_app
from url_shortener.exceptions import StoreUnavailableError


def _shorten(client, url):
    return client.post("/shorten", json={"originalUrl": url})


# -------------------------
# POST /shorten
# -------------------------

def test_shorten_created(client):
    """
    A new URL answers 201 with the record and an absolute short URL.

    LLM Prompt Example:
        "Show how to assert on both status and body shape for a create endpoint."
    """
    response = _shorten(client, "https://example.com/a")
    data = response.json()

    assert response.status_code == 201
    assert data["message"] == "URL shortened successfully"
    assert data["originalUrl"] == "https://example.com/a"
    assert len(data["shortUrl"]) == 8
    assert data["shortUrlFull"] == f"http://testserver/{data['shortUrl']}"
    assert data["createdAt"].startswith("2025-01-01T00:00:00")
    assert "accessCount" not in data


def test_shorten_existing_returns_200_same_code(client):
    first = _shorten(client, "https://example.com/a").json()
    response = _shorten(client, "https://example.com/a")

    assert response.status_code == 200
    assert response.json()["message"] == "URL already shortened"
    assert response.json()["shortUrl"] == first["shortUrl"]


@pytest.mark.parametrize("body", [{}, {"originalUrl": ""}, {"originalUrl": None}])
def test_shorten_missing_url(client, body):
    response = client.post("/shorten", json=body)
    assert response.status_code == 400
    assert response.json() == {"error": "originalUrl is required in request body"}


@pytest.mark.parametrize("url", ["ftp://x.com", "not-a-url", "https://"])
def test_shorten_invalid_url(client, url):
    response = _shorten(client, url)
    assert response.status_code == 400
    assert "Invalid URL format" in response.json()["error"]


def test_shorten_exhaustion_is_500(client, manager):
    taken = manager.shorten("https://taken.com").short_code
    with patch.object(manager.engine.generator, "generate", return_value=taken):
        response = _shorten(client, "https://new.com")
    assert response.status_code == 500
    assert "after 10 attempts" in response.json()["error"]


# -------------------------
# POST /url-info and /redirect
# -------------------------

def test_url_info_does_not_count(client):
    code = _shorten(client, "https://example.com/info").json()["shortUrl"]
    for _ in range(3):
        response = client.post("/url-info", json={"shortUrl": code})
    data = response.json()

    assert response.status_code == 200
    assert data["accessCount"] == 0
    assert data["originalUrl"] == "https://example.com/info"
    assert data["shortUrlFull"].endswith(f"/{code}")


def test_redirect_counts_every_call(client):
    code = _shorten(client, "https://example.com/r").json()["shortUrl"]
    counts = [client.post("/redirect", json={"shortUrl": code}).json()["accessCount"] for _ in range(3)]
    assert counts == [1, 2, 3]

    info = client.post("/url-info", json={"shortUrl": code}).json()
    assert info["accessCount"] == 3


def test_redirect_payload(client):
    code = _shorten(client, "https://example.com/r").json()["shortUrl"]
    response = client.post("/redirect", json={"shortUrl": code})
    assert response.status_code == 200
    assert response.json() == {"redirectUrl": "https://example.com/r", "accessCount": 1}


@pytest.mark.parametrize("path", ["/url-info", "/redirect"])
def test_unknown_short_code_is_404(client, path):
    response = client.post(path, json={"shortUrl": "doesnotexist"})
    assert response.status_code == 404
    assert response.json() == {"error": "Short URL not found"}


@pytest.mark.parametrize("path", ["/url-info", "/redirect"])
def test_missing_short_code_is_400(client, path):
    response = client.post(path, json={})
    assert response.status_code == 400
    assert response.json() == {"error": "shortUrl is required in request body"}


# -------------------------
# GET /{short_code}
# -------------------------

def test_browser_redirect(client):
    code = _shorten(client, "https://example.com/go").json()["shortUrl"]
    response = client.get(f"/{code}", follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == "https://example.com/go"
    assert client.post("/url-info", json={"shortUrl": code}).json()["accessCount"] == 1


def test_browser_redirect_unknown(client):
    response = client.get("/doesnotexist", follow_redirects=False)
    assert response.status_code == 404
    assert response.json()["error"] == "Short URL not found"


def test_unknown_route(client):
    response = client.post("/no/such/route")
    assert response.status_code == 404
    assert response.json() == {"error": "Route not found"}


# -------------------------
# POST /urls
# -------------------------

def test_urls_pagination(client):
    for i in range(25):
        _shorten(client, f"https://e.com/{i}")

    first = client.post("/urls", json={"page": 1, "limit": 10}).json()
    assert [u["originalUrl"] for u in first["urls"]][:2] == ["https://e.com/24", "https://e.com/23"]
    assert first["pagination"] == {"currentPage": 1, "totalPages": 3, "totalUrls": 25, "limit": 10}
    assert all("shortUrlFull" in u and "accessCount" in u for u in first["urls"])

    third = client.post("/urls", json={"page": 3, "limit": 10}).json()
    assert len(third["urls"]) == 5

    fourth = client.post("/urls", json={"page": 4, "limit": 10}).json()
    assert fourth["urls"] == []
    assert fourth["pagination"]["totalUrls"] == 25


def test_urls_defaults_without_body(client):
    _shorten(client, "https://e.com/only")
    data = client.post("/urls").json()
    assert data["pagination"] == {"currentPage": 1, "totalPages": 1, "totalUrls": 1, "limit": 10}


@pytest.mark.parametrize("body", [{"page": 0}, {"limit": 0}, {"page": -2, "limit": 5}])
def test_urls_rejects_non_positive_window(client, body):
    response = client.post("/urls", json=body)
    assert response.status_code == 400
    assert "must be a positive integer" in response.json()["error"]


def test_urls_rejects_page_past_addressable_offset(client):
    response = client.post("/urls", json={"page": 2**62, "limit": 10})
    assert response.status_code == 400
    assert response.json() == {"error": "page and limit are out of range"}


# -------------------------
# Malformed bodies
# -------------------------

@pytest.mark.parametrize("path,body,field", [
    ("/shorten", {"originalUrl": 123}, "originalUrl"),
    ("/url-info", {"shortUrl": ["abc"]}, "shortUrl"),
    ("/redirect", {"shortUrl": {"code": "abc"}}, "shortUrl"),
    ("/urls", {"page": "first"}, "page"),
])
def test_wrongly_typed_body_is_400_error_shape(client, telemetry, path, body, field):
    response = client.post(path, json=body)
    data = response.json()

    assert response.status_code == 400
    assert set(data) == {"error"}
    assert data["error"].startswith(f"Invalid request body: {field}:")
    assert any(m.startswith("Invalid request body") for m in telemetry.messages("error"))


def test_unparseable_json_is_400_error_shape(client):
    response = client.post("/shorten", content=b"{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid request body")


# -------------------------
# Health and store failures
# -------------------------

def test_health_ok(client):
    response = client.get("/health")
    data = response.json()
    assert response.status_code == 200
    assert data["status"] == "healthy"
    assert data["database"] == "connected"
    assert data["uptime"] >= 0
    assert client.post("/health").status_code == 200


def test_health_store_down(client, storage):
    with patch.object(storage, "ping", return_value=False):
        response = client.get("/health")
    assert response.status_code == 503
    assert response.json()["database"] == "disconnected"


@pytest.mark.parametrize("method,args", [
    ("post", ("/shorten", {"originalUrl": "https://example.com"})),
    ("post", ("/redirect", {"shortUrl": "abc"})),
    ("post", ("/url-info", {"shortUrl": "abc"})),
    ("post", ("/urls", {})),
])
def test_store_unavailable_is_503(client, storage, method, args):
    down = StoreUnavailableError("connection refused")
    path, body = args
    with patch.object(storage, "find_by_original_url", side_effect=down), \
            patch.object(storage, "find_by_short_code", side_effect=down), \
            patch.object(storage, "increment_access_count", side_effect=down), \
            patch.object(storage, "query_page", side_effect=down):
        response = getattr(client, method)(path, json=body)
    assert response.status_code == 503
    assert response.json() == {"error": "Record store unavailable"}


# -------------------------
# Telemetry
# -------------------------

def test_shutdown_closes_sink_without_draining(manager, telemetry):
    with patch.object(telemetry, "close") as close:
        with TestClient(create_app(manager=manager)) as client:
            assert client.get("/health").status_code == 200
    close.assert_called_once_with(drain=False)
    assert telemetry.messages("info")[0] == "Server started"


def test_request_and_response_events(client, telemetry):
    _shorten(client, "https://example.com/t")
    client.post("/redirect", json={"shortUrl": "doesnotexist"})

    assert "Incoming POST request to /shorten" in telemetry.messages("info")
    errors = telemetry.messages("error")
    assert any(m.startswith("Response sent: POST /redirect - Status: 404") for m in errors)
    assert any(e.package == "middleware" for e in telemetry.events)
