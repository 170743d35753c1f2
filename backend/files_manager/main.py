"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from files_manager.auth.routes import router as auth_router
from files_manager.cache.client import CacheClient, get_cache
from files_manager.config import get_settings
from files_manager.db.session import db_is_alive, get_db, init_db
from files_manager.exceptions import FilesManagerError
from files_manager.files.repository import FileRepository
from files_manager.files.routes import router as files_router
from files_manager.limiter import limiter
from files_manager.logging_config import setup_logging
from files_manager.users.routes import router as users_router

log = logging.getLogger(__name__)

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and connect the session cache on startup."""
    settings = get_settings()
    log.info("Startup: initializing database and cache")
    await init_db()
    app.state.cache = CacheClient(settings.redis_url)
    await app.state.cache.connect()
    log.info("Startup complete")
    yield
    await app.state.cache.close()
    log.info("Shutdown")


app = FastAPI(title="Files Manager API", version="0.1.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add security headers to all responses."""
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    return response


@app.exception_handler(FilesManagerError)
async def files_manager_error_handler(request: Request, exc: FilesManagerError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors as {"error": message}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    log.debug("Request validation failed: %s", exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request"})


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Return generic 500 without leaking stack trace or internals."""
    log.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal Server Error"},
    )


app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(files_router)


@app.get("/status")
@limiter.exempt
async def status(cache: Annotated[CacheClient, Depends(get_cache)]) -> dict:
    """Health of the session cache and the database."""
    return {"redis": await cache.is_alive(), "db": await db_is_alive()}


@app.get("/stats")
async def stats(session: Annotated[AsyncSession, Depends(get_db)]) -> dict:
    """Number of users and files."""
    repository = FileRepository(session)
    return {"users": await repository.count_users(), "files": await repository.count_files()}
