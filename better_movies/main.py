import logging
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
from fastapi import FastAPI, Query, Request
from fastapi.staticfiles import StaticFiles
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from . import tmdb
from .auth import verify_csrf
from .config import CORS_ORIGINS, LOG_LEVEL, SEARCH_RATE_LIMIT
from .database import init_db, close_db
from .errors import register_error_handlers
from .logging_config import setup_logging
from .routes_lists import router as lists_router

setup_logging(LOG_LEVEL)
logger = logging.getLogger(__name__)

FRONTEND_DIR = Path(__file__).parent.parent / "frontend" / "dist"

limiter = Limiter(key_func=get_remote_address)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    yield
    await tmdb.close_client()
    await close_db()


app = FastAPI(lifespan=lifespan)
app.state.limiter = limiter
register_error_handlers(app)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(status_code=429, content={"detail": "Too many requests. Please try again later."})


# Security headers middleware
@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


# CSRF check for cookie-authenticated state-changing requests
@app.middleware("http")
async def csrf_middleware(request: Request, call_next):
    if request.method in ("POST", "PUT", "PATCH", "DELETE") and not verify_csrf(request):
        return JSONResponse(status_code=403, content={"detail": "CSRF token mismatch"})
    return await call_next(request)


if CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization", "X-CSRF-Token"],
    )


app.include_router(lists_router)


@app.get("/api/health")
async def health():
    return {"ok": True}


@app.get("/api/tmdb/search")
@limiter.limit(SEARCH_RATE_LIMIT)
async def search(
    request: Request,
    q: str | None = Query(None, max_length=200),
    page: int = Query(1, ge=1, le=500),
    type: str = Query("multi"),
):
    query = (q or "").strip()
    if not query:
        return JSONResponse(status_code=400, content={"detail": "Query parameter is required"})
    if type not in tmdb.SEARCH_TYPES:
        return JSONResponse(
            status_code=400,
            content={"detail": "Invalid type parameter. Must be movie, tv, or multi"},
        )
    try:
        data = await tmdb.search(query, page=page, search_type=type)
    except tmdb.MissingApiKeyError:
        logger.error("Catalog search requested but TMDB_API_KEY is not configured")
        return JSONResponse(status_code=500, content={"detail": "TMDB API key is not configured"})
    except httpx.HTTPStatusError as exc:
        logger.warning(
            "TMDB search failed (status=%s, body=%s)", exc.response.status_code, exc.response.text[:500]
        )
        return JSONResponse(
            status_code=exc.response.status_code,
            content={"detail": "Failed to fetch from TMDB API"},
        )
    except httpx.HTTPError:
        logger.exception("TMDB search request error")
        return JSONResponse(status_code=502, content={"detail": "Failed to fetch from TMDB API"})
    return tmdb.normalize_search_response(data, type)


if FRONTEND_DIR.exists():
    app.mount("/", StaticFiles(directory=str(FRONTEND_DIR), html=True), name="frontend")
