"""
api/main.py -- FastAPI application entry point for the portfolio API.

Serves portfolio content (projects, blog, skills, experience, education,
categories), account management, the contact inbox and a cached GitHub proxy
under /api/v1.

Run with:      uvicorn api.main:app --reload
               python main.py serve --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces API_RATE_LIMIT on undecorated routes

Lifespan handles startup (stores, services, cache, purge task, admin
bootstrap) and shutdown (cancel purge task, close connections) symmetrically.
"""

from __future__ import annotations

import asyncio
import logging
import time
import traceback
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.blog import router as blog_router
from api.routes.v1.categories import router as categories_router
from api.routes.v1.contacts import router as contacts_router
from api.routes.v1.educations import router as educations_router
from api.routes.v1.experiences import router as experiences_router
from api.routes.v1.github import router as github_router
from api.routes.v1.projects import router as projects_router
from api.routes.v1.skills import router as skills_router
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenIssuer
from cache.store import ResponseCache
from content.services import build_services
from content.store import ContentStore
from core.config import get_settings
from core.errors import AppError
from core.mailer import Mailer
from storage.files import LocalFileStorage

VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("portfolio.api")

settings = get_settings()

# ---------------------------------------------------------------------------
# Background purge task
# ---------------------------------------------------------------------------


async def _purge_loop(app: FastAPI) -> None:
    """Purge expired GitHub cache entries every 6 hours.

    CancelledError from task.cancel() during shutdown propagates out of
    asyncio.sleep and unwinds the coroutine cleanly.
    """
    while True:
        await asyncio.sleep(6 * 60 * 60)
        removed = app.state.cache.purge_expired()
        logger.info("Purged %d expired cache entries", removed)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build every store and service once and hang them on app.state.

    Startup order matters:
      1. Stores first -- create_all runs here, so an unreachable database
         aborts startup instead of failing the first request.
      2. Services next -- they only hold references to the stores.
      3. Admin bootstrap, then the purge task, which needs app.state.cache.
    """
    s = get_settings()
    logger.info("Portfolio API starting up (debug=%s)", s.debug)

    app.state.user_store = UserStore(db_url=s.database_url)
    app.state.content_store = ContentStore(db_url=s.database_url)
    app.state.files = LocalFileStorage(s.upload_dir, s.public_base_url, s.max_image_bytes, s.max_document_bytes)
    app.state.cache = ResponseCache(s.github_cache_path, ttl=s.github_cache_ttl)
    logger.info("Stores initialized")

    app.state.auth = AuthService(
        app.state.user_store,
        TokenIssuer.from_settings(s),
        rounds=s.bcrypt_rounds,
        files=app.state.files,
    )
    app.state.mailer = Mailer(s)
    app.state.content = build_services(app.state.content_store, app.state.files, app.state.mailer)

    if s.admin_email:
        app.state.auth.ensure_admin(s.admin_email, s.admin_password, s.admin_name)

    app.state.started_at = time.monotonic()
    app.state.purge_task = asyncio.create_task(_purge_loop(app))

    yield

    # Shutdown
    app.state.purge_task.cancel()
    app.state.cache.close()
    app.state.content_store.close()
    app.state.user_store.close()
    logger.info("Portfolio API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Portfolio API",
    description="Content, accounts, contact inbox and GitHub statistics for a personal portfolio site.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# add_middleware() wraps the current stack, so the LAST call is outermost.
# Registered innermost-first: SlowAPI, then CORS, then TrustedHost.
# ---------------------------------------------------------------------------

app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

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

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(projects_router, prefix="/api/v1", tags=["Projects"])
app.include_router(blog_router, prefix="/api/v1", tags=["Blog"])
app.include_router(categories_router, prefix="/api/v1", tags=["Categories"])
app.include_router(skills_router, prefix="/api/v1", tags=["Skills"])
app.include_router(experiences_router, prefix="/api/v1", tags=["Experience"])
app.include_router(educations_router, prefix="/api/v1", tags=["Education"])
app.include_router(contacts_router, prefix="/api/v1", tags=["Contacts"])
app.include_router(github_router, prefix="/api/v1", tags=["GitHub"])

# Uploaded images and résumés. check_dir=False because LocalFileStorage
# creates the directory in lifespan, after this module is imported.
app.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str, exc: BaseException | None = None) -> JSONResponse:
    stack = None
    if exc is not None and get_settings().debug:
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, stack=stack)).model_dump(exclude_none=True),
    )


def _field_name(loc: tuple) -> str:
    return ".".join(str(part) for part in loc if part not in ("body", "query", "path", "header"))


def validation_message(errors: list[dict]) -> str:
    """Summarize pydantic errors as "Missing required fields: a, b" or the first invalid field."""
    missing = [e for e in errors if e.get("type") == "missing"]
    if missing:
        names = [_field_name(tuple(e.get("loc", ()))) for e in missing]
        if not all(names):
            return "Request body is required."
        return f"Missing required fields: {', '.join(names)}"
    if not errors:
        return "Invalid request."
    first = errors[0]
    name = _field_name(tuple(first.get("loc", ())))
    return f"Invalid value for '{name}': {first.get('msg')}" if name else str(first.get("msg"))


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
        return _error(exc.status_code, exc.code, exc.message, exc)
    return _error(exc.status_code, exc.code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 naming the missing fields or the first invalid one."""
    return _error(400, "validation_error", validation_message(list(exc.errors())))


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """A uniqueness race that slipped past a service pre-check."""
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return _error(409, "conflict", "Resource already exists.")


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded.

    Retry-After tells clients how many seconds to wait before retrying.
    """
    retry_after = int(getattr(exc, "retry_after", 60) or 60)
    response = _error(429, "rate_limited", "Too many requests, please try again later.")
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Router-level errors: unknown path (404), wrong method (405)."""
    codes = {404: "not_found", 405: "method_not_allowed"}
    return _error(exc.status_code, codes.get(exc.status_code, f"http_{exc.status_code}"), str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The traceback always goes to the log. It reaches the response body only
    in DEBUG mode.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "An unexpected error occurred.", exc)


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state. Exempt from rate limiting --
# health checks from load balancers and monitoring must not be throttled.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
@limiter.exempt
def health(request: Request) -> HealthResponse:
    """Return liveness, uptime and database reachability."""
    state = request.app.state
    try:
        database_ok = state.user_store.ping() and state.content_store.ping()
    except SQLAlchemyError:
        logger.exception("Health check: database unreachable")
        database_ok = False
    return HealthResponse(
        status="healthy" if database_ok else "degraded",
        version=VERSION,
        environment="development" if get_settings().debug else "production",
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime=round(time.monotonic() - getattr(state, "started_at", time.monotonic()), 3),
        components={"database": "ok" if database_ok else "unavailable"},
    )
