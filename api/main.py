"""
FastAPI application initialization and configuration.
"""

import logging
from contextlib import asynccontextmanager

import redis.asyncio as redis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import settings
from database.engine import init_db, close_db
from api.routes import health
from api.routes.v1 import applications, auth, chat, openings, teams, users

from core.middleware import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    StructuredLoggingMiddleware,
    setup_logging,
    RateLimitMiddleware,
    default_rules,
    AuthenticationMiddleware,
)

# Setup structured logging (do this first, before anything else)
setup_logging(
    log_level=settings.log_level,
    json_logs=settings.json_logs,
)

logger = logging.getLogger(__name__)

# Shared so the lifespan can close it; None when rate limiting is off
rate_limit_redis = (
    redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_keepalive=True,
        health_check_interval=30,
    )
    if settings.rate_limit_enabled
    else None
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    logger.info(f"Starting {settings.app_name} in {settings.app_env} environment")
    await init_db()

    yield

    logger.info(f"Shutting down {settings.app_name}")
    if rate_limit_redis is not None:
        await rate_limit_redis.aclose()
    await close_db()


app = FastAPI(
    title=settings.app_name,
    description="Team matchmaking: openings, applications, teams and chat",
    version=str(settings.app_version),
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# Setup error handlers (before middleware)
setup_error_handlers(app, debug=settings.debug)

# Middleware executes in reverse order of registration: CORS is outermost,
# rate limiting runs last so it can key on the authenticated user.
if settings.rate_limit_enabled:
    app.add_middleware(
        RateLimitMiddleware,
        redis_url=settings.redis_url,
        rules=default_rules(
            api_prefix=settings.api_prefix,
            per_minute=settings.rate_limit_per_minute,
            per_hour=settings.rate_limit_per_hour,
            auth_per_minute=settings.rate_limit_auth_per_minute,
            chat_per_minute=settings.rate_limit_chat_per_minute,
        ),
        key_prefix=f"{settings.app_name}:ratelimit",
        enable_headers=True,
        redis_client=rate_limit_redis,
    )

app.add_middleware(
    AuthenticationMiddleware,
    jwt_secret=settings.jwt_secret_key,
    jwt_algorithm=settings.jwt_algorithm,
    api_prefix=settings.api_prefix,
)

app.add_middleware(
    StructuredLoggingMiddleware,
    log_request_body=settings.log_request_body,
    max_body_size=settings.log_max_body_size,
)

app.add_middleware(
    ErrorHandlingMiddleware,
    debug=settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Health check routes are never prefixed
app.include_router(health.router)

for module in (auth, openings, applications, users, teams, chat):
    app.include_router(module.router, prefix=settings.api_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
