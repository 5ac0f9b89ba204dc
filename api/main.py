"""
api/main.py -- FastAPI application entry point for CineReview.

Run with:  uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan builds the stores and services once and hangs them on app.state;
route handlers reach them through request.app.state. Nothing is looked up
from module globals at request time.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError

from api.limiter import limiter
from api.models import ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.movies import router as movies_router
from api.routes.v1.reviews import router as reviews_router
from auth.service import AuthService
from auth.store import UserStore
from catalog.service import MovieCatalog, MovieReviewAggregator, ReviewWriter
from catalog.store import CatalogStore
from core.config import Settings, get_settings
from core.errors import ServiceError, UnauthorizedError

VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("cinereview.api")

_settings = get_settings()


# ---------------------------------------------------------------------------
# Service wiring
# ---------------------------------------------------------------------------


def wire_services(app: FastAPI, user_store: UserStore, catalog: CatalogStore, settings: Settings) -> None:
    """Attach stores and the services built on them to app.state.

    Shared by the real lifespan and the test lifespan so both run the exact
    same object graph.
    """
    app.state.user_store = user_store
    app.state.catalog_store = catalog
    app.state.auth_service = AuthService(user_store)
    app.state.movie_catalog = MovieCatalog(catalog, integrity=settings.review_integrity)
    app.state.aggregator = MovieReviewAggregator(catalog)
    app.state.review_writer = ReviewWriter(catalog, integrity=settings.review_integrity)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the stores on startup and dispose of their engines on shutdown."""
    logger.info("CineReview API starting up")
    user_store = UserStore(_settings.database_url)
    catalog = CatalogStore(_settings.database_url)
    wire_services(app, user_store, catalog, _settings)
    logger.info(
        "Stores initialized (review_integrity=%s, token_expire_seconds=%d)",
        _settings.review_integrity,
        _settings.token_expire_seconds,
    )

    yield

    user_store.close()
    catalog.close()
    logger.info("CineReview API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="CineReview API",
    description="Movies, reviews, and token-based authentication.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=_settings.allowed_hosts,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost", "http://localhost:3000", "http://127.0.0.1"],
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, tags=["Auth"])
app.include_router(movies_router, tags=["Movies"])
app.include_router(reviews_router, tags=["Reviews"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str, detail: str | None = None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(code=code, message=message, detail=detail).model_dump(exclude_none=True),
        headers=headers,
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Render any domain error with the status and code carried on its class."""
    headers = None
    if isinstance(exc, UnauthorizedError):
        headers = {"WWW-Authenticate": _settings.token_scheme}
    return _error(exc.status_code, exc.code, exc.message, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 when the body or query fails validation.

    An absent required field is missing_fields; anything else (wrong type,
    out of range, unknown genre, empty actors list) is validation_error.
    """
    errors = exc.errors()
    missing = [err for err in errors if err.get("type") == "missing"]
    if missing:
        fields = ", ".join(str(err["loc"][-1]) for err in missing)
        return _error(400, "missing_fields", f"Missing required fields: {fields}.")
    first = errors[0] if errors else {}
    if first.get("type") == "json_invalid":
        return _error(400, "validation_error", "body: invalid JSON")
    field = ".".join(str(part) for part in first.get("loc", ())[1:]) or "body"
    return _error(
        400,
        "validation_error",
        f"{field}: {first.get('msg', 'invalid value')}",
        detail=str(errors),
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    return _error(429, "rate_limited", "Too many requests.", detail=str(exc), headers={"Retry-After": str(retry_after)})


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Store failures are not retried; they surface as 500 with the driver message only.

    The SQL statement and parameters stay in the log, never in the response.
    """
    logger.exception("Store failure on %s %s", request.method, request.url.path)
    orig = getattr(exc, "orig", None)
    message = str(orig) if orig is not None else exc.__class__.__name__
    return _error(500, "internal_error", message)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error(exc.status_code, f"http_{exc.status_code}", str(exc.detail), headers=exc.headers)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable.
# No auth, no rate limit.
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version, and a database round-trip check."""
    try:
        request.app.state.user_store.ping()
        request.app.state.catalog_store.ping()
        database = "ok"
    except SQLAlchemyError:
        logger.exception("Health check database ping failed")
        database = "error"
    return HealthResponse(version=VERSION, components={"app": "ok", "database": database})
