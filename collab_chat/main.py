"""
FastAPI Application Entry Point.
Initializes the FastAPI app with middleware, CORS, error handlers and routes.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from collab_chat import __version__
from collab_chat.config import settings
from collab_chat.core.cache import cache
from collab_chat.core.database import AsyncSessionLocal, engine
from collab_chat.core.exceptions import MessagingError
from collab_chat.core.rate_limit import limiter
from collab_chat.core.user_directory import UserDirectoryException, user_directory

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    await cache.connect()
    yield
    # Shutdown
    await cache.disconnect()
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title="Collab Chat Messaging Server",
    description="Direct conversations, group chats, read state and blocking for the creator community",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# Add rate limiter state and error handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)


@app.exception_handler(MessagingError)
async def messaging_error_handler(request: Request, exc: MessagingError):
    """Render messaging errors as {"detail", "code"} with their mapped status."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
    )


@app.exception_handler(UserDirectoryException)
async def user_directory_error_handler(request: Request, exc: UserDirectoryException):
    logger.error(f"[USER_DIRECTORY] {exc}")
    return JSONResponse(
        status_code=503,
        content={"detail": "User service unavailable", "code": "UserDirectoryUnavailable"},
    )


# CORS Middleware
cors_origins = settings.get_allowed_origins_list()
logger.info(f"CORS allowed origins: {cors_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health Check Endpoints
@app.get("/health", tags=["Health"])
@limiter.exempt
async def health_check():
    """Basic health check endpoint."""
    return JSONResponse(
        status_code=200,
        content={
            "status": "healthy",
            "environment": settings.environment,
        }
    )


@app.get("/health/ready", tags=["Health"])
@limiter.exempt
async def readiness_check():
    """
    Readiness check endpoint.
    Verifies database, cache, and user service connectivity.
    """
    checks = {
        "database": False,
        "redis": "not_configured" if not settings.redis_url else False,
        "user_directory": False,
    }

    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
            checks["database"] = True
    except SQLAlchemyError as e:
        logger.warning(f"[HEALTH] Database check failed: {e}")

    if settings.redis_url:
        checks["redis"] = cache.redis is not None

    checks["user_directory"] = await user_directory.health_check()

    # Consider redis as healthy if not configured
    redis_ok = checks["redis"] == "not_configured" or checks["redis"] is True
    all_healthy = checks["database"] and redis_ok and checks["user_directory"]
    status_code = 200 if all_healthy else 503

    return JSONResponse(
        status_code=status_code,
        content={
            "status": "ready" if all_healthy else "not ready",
            "checks": checks,
        }
    )


# Include API routers
from collab_chat.api.v1 import messages, group_chats, blocks  # noqa: E402

app.include_router(
    messages.router,
    prefix="/api/v1/messages",
    tags=["Messages"]
)

app.include_router(
    group_chats.router,
    prefix="/api/v1/group-chats",
    tags=["Group Chats"]
)

app.include_router(
    blocks.router,
    prefix="/api/v1/blocks",
    tags=["Blocks"]
)
