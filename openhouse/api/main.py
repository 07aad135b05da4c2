"""FastAPI application setup and configuration."""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from openhouse import __version__
from openhouse.api.dependencies import close_clients
from openhouse.api.middleware.error_handler import (
    generic_exception_handler,
    openhouse_exception_handler,
    validation_exception_handler,
)
from openhouse.api.middleware.logging import LoggingMiddleware, setup_logging
from openhouse.api.routes import (
    connections,
    feed,
    health,
    ideas,
    leaderboard,
    mentorship,
    messages,
    payments,
    profiles,
    projects,
    realtime,
    validator,
)
from openhouse.errors import OpenHouseError
from openhouse.services.database import initialize_database, shutdown_database


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Handles startup and shutdown events.
    """
    # Startup
    setup_logging(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_format=os.getenv("LOG_FORMAT", "json"),
    )

    database_url = os.getenv("DATABASE_URL")
    if database_url:
        db_manager = initialize_database(database_url)
        await db_manager.initialize_async()

    yield

    # Shutdown
    await close_clients()
    await shutdown_database()


app = FastAPI(
    title="Open House API",
    description="Backend for the Open House student founder network",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# ========== CORS Configuration ==========

allowed_origins = os.getenv("CORS_ALLOWED_ORIGINS", "*").split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    allow_headers=["Authorization", "Content-Type", "X-Razorpay-Signature"],
)

# ========== Custom Middleware ==========

app.add_middleware(LoggingMiddleware)

# ========== Exception Handlers ==========

app.add_exception_handler(OpenHouseError, openhouse_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(ValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# ========== Route Registration ==========

app.include_router(health.router)
app.include_router(profiles.router)
app.include_router(ideas.router)
app.include_router(feed.router)
app.include_router(connections.router)
app.include_router(messages.router)
app.include_router(projects.router)
app.include_router(mentorship.router)
app.include_router(leaderboard.router)
app.include_router(payments.router)
app.include_router(validator.router)
app.include_router(realtime.router)

# ========== Root Endpoint ==========

API_AREAS = {
    "profiles": "/v1/profiles",
    "ideas": "/v1/ideas",
    "feed": "/v1/feed",
    "connections": "/v1/connections",
    "messages": "/v1/conversations",
    "projects": "/v1/projects",
    "mentors": "/v1/mentors",
    "mentorship": "/v1/mentorship/sessions",
    "leaderboard": "/v1/leaderboard",
    "payments": "/v1/payments",
    "idea_validator": "/v1/idea-validator",
    "realtime": "/v1/realtime/{table}",
}


@app.get("/", tags=["root"], summary="Service index")
async def root() -> dict:
    """Service name, version and where to find each API area."""
    return {
        "service": "Open House API",
        "version": __version__,
        "documentation": {"openapi": app.openapi_url, "swagger": app.docs_url},
        "health": {
            "liveness": "/v1/liveness",
            "readiness": "/v1/readiness",
            "health": "/v1/health",
        },
        "areas": API_AREAS,
    }


# ========== Development Server ==========

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "openhouse.api.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8080")),
        reload=True,
    )
