"""
Main API module for the URL shortener.

Responsibilities:
    - Expose the core operations over HTTP as JSON POST endpoints plus a browser redirect
    - Map the core error taxonomy to status codes
    - Emit request/response telemetry without delaying responses

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - Routes are thin: parse the body, call UrlManager, shape the JSON.
    - Storage and telemetry come from configuration unless injected.

Run:
    uvicorn main:app --reload
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from url_shortener.exceptions import ShortenerError, StoreUnavailableError
from url_shortener.logging_setup import initialize_logging
from url_shortener.manager.url_manager import UrlManager
from url_shortener.models import UrlRecord
from url_shortener.storage.storage_factory import get_storage
from url_shortener.telemetry.base import BaseTelemetry
from url_shortener.telemetry.telemetry import emit, get_telemetry


class ShortenRequest(BaseModel):
    """Request payload for creating a short URL."""
    originalUrl: Optional[str] = None


class ShortCodeRequest(BaseModel):
    """Request payload naming an existing short code."""
    shortUrl: Optional[str] = None


class ListRequest(BaseModel):
    """Request payload for paging through all short URLs."""
    page: int = 1
    limit: int = 10


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": message})


def create_app(manager: Optional[UrlManager] = None, telemetry: Optional[BaseTelemetry] = None) -> FastAPI:
    """
    Build and configure a new FastAPI app instance.

    Args:
        manager (Optional[UrlManager]): Core facade; built from config when omitted.
        telemetry (Optional[BaseTelemetry]): Event sink; defaults to the manager's
            sink, or to the configured one.

    Returns:
        FastAPI: An application with its own store and telemetry sink.
    """
    if not logging.getLogger().handlers:
        initialize_logging()
    log = logging.getLogger("url_shortener.api")

    if manager is None:
        telemetry = telemetry or get_telemetry()
        manager = UrlManager(storage=get_storage(), telemetry=telemetry)
    elif telemetry is None:
        telemetry = manager.telemetry

    started = time.monotonic()

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        emit(telemetry, "info", "server", "Server started")
        yield
        emit(telemetry, "info", "server", "Shutting down gracefully")
        if telemetry is not None:
            telemetry.close(drain=False)

    app = FastAPI(
        title="URL Shortener",
        description="Short-code generation and resolution with access counting",
        docs_url="/docs",
        lifespan=lifespan,
    )
    app.state.manager = manager
    app.state.telemetry = telemetry
    log.info("URL shortener storage backend: %s", type(manager.storage).__name__)

    # ----------------------------------------------------------------
    # Utilities
    # ----------------------------------------------------------------
    def _full_url(request: Request, short_code: str) -> str:
        return str(request.url_for("redirect_short_code", short_code=short_code))

    def _with_full_url(request: Request, record: UrlRecord) -> Dict[str, Any]:
        data = record.to_dict()
        data["shortUrlFull"] = _full_url(request, record.short_code)
        return data

    # ----------------------------------------------------------------
    # Middleware & error mapping
    # ----------------------------------------------------------------
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        emit(telemetry, "info", "middleware", f"Incoming {request.method} request to {request.url.path}")
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000.0
        level = "error" if response.status_code >= 400 else "info"
        emit(
            telemetry, level, "middleware",
            f"Response sent: {request.method} {request.url.path} - Status: {response.status_code} "
            f"- Duration: {duration_ms:.0f}ms",
        )
        return response

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
        log.error("Store unavailable on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content={"error": "Record store unavailable"})

    @app.exception_handler(ShortenerError)
    async def shortener_error_handler(request: Request, exc: ShortenerError):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body") or "body"
        message = f"Invalid request body: {field}: {first.get('msg', 'malformed')}"
        emit(telemetry, "error", "handler", message)
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            emit(telemetry, "error", "handler", f"Route not found: {request.method} {request.url.path}")
            return JSONResponse(status_code=404, content={"error": "Route not found"})
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    # ----------------------------------------------------------------
    # Routes
    # ----------------------------------------------------------------
    @app.api_route("/health", methods=["GET", "POST"])
    def health() -> JSONResponse:
        connected = manager.healthcheck()
        body = {
            "status": "healthy" if connected else "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": "connected" if connected else "disconnected",
            "uptime": round(time.monotonic() - started, 3),
        }
        return JSONResponse(status_code=200 if connected else 503, content=body)

    @app.post("/shorten")
    def shorten(req: ShortenRequest, request: Request) -> JSONResponse:
        if not req.originalUrl:
            emit(telemetry, "error", "handler", "Missing originalUrl in request body")
            return _bad_request("originalUrl is required in request body")

        outcome = manager.shorten_detailed(req.originalUrl)
        body = _with_full_url(request, outcome.record)
        body.pop("accessCount")
        if outcome.created:
            body["message"] = "URL shortened successfully"
            return JSONResponse(status_code=201, content=body)
        body["message"] = "URL already shortened"
        return JSONResponse(status_code=200, content=body)

    @app.post("/url-info")
    def url_info(req: ShortCodeRequest, request: Request) -> Dict[str, Any]:
        if not req.shortUrl:
            emit(telemetry, "error", "handler", "Missing shortUrl in request body")
            return _bad_request("shortUrl is required in request body")
        record = manager.lookup(req.shortUrl)
        return _with_full_url(request, record)

    @app.post("/redirect")
    def redirect(req: ShortCodeRequest) -> Dict[str, Any]:
        if not req.shortUrl:
            emit(telemetry, "error", "handler", "Missing shortUrl in request body")
            return _bad_request("shortUrl is required in request body")
        record = manager.resolve(req.shortUrl)
        return {"redirectUrl": record.original_url, "accessCount": record.access_count}

    @app.post("/urls")
    def list_urls(request: Request, req: Optional[ListRequest] = None) -> Dict[str, Any]:
        req = req or ListRequest()
        page = manager.list_records(page=req.page, limit=req.limit)
        return {
            "urls": [_with_full_url(request, record) for record in page.records],
            "pagination": {
                "currentPage": page.page,
                "totalPages": page.total_pages,
                "totalUrls": page.total_count,
                "limit": page.limit,
            },
        }

    @app.get("/{short_code}")
    def redirect_short_code(short_code: str) -> RedirectResponse:
        record = manager.resolve(short_code)
        return RedirectResponse(url=record.original_url, status_code=302)

    return app


# `uvicorn main:app --reload` and `from main import app` work.
app = create_app()
