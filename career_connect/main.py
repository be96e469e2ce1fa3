"""
Career Connect - Main Application

FastAPI backend with:
- SQL store (PostgreSQL) for participants, conversations, messages, requests
- MongoDB for role-specific profile documents
- WebSocket fan-out for live messages and interview request changes
- JWT authentication
- Streaming AI assistant (OpenAI-compatible endpoint)

Run: uvicorn career_connect.main:app --reload
"""

import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from career_connect import __version__
from career_connect.api.routes import api_router
from career_connect.core.config import get_settings
from career_connect.core.errors import PlatformError, TransientIO, Unauthenticated
from career_connect.core.logging_config import configure_logging
from career_connect.db.database import init_db
from career_connect.db.mongodb import init_mongo_indexes

settings = get_settings()
configure_logging()
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Career Connect",
    description="""
    Matching and communication platform for students, job givers and mentors.

    ## Features
    - **Authentication**: JWT-based auth for all three roles
    - **Conversations**: exactly one conversation per pair of participants
    - **Messages**: ordered history plus live delivery over WebSocket
    - **Interview Requests**: job givers invite, students accept or reject
    - **AI Assistant**: streamed career advice
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PlatformError)
async def platform_error_handler(request: Request, exc: PlatformError):
    """Render domain errors as {"detail", "error"} with their status code."""
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.code},
        headers=headers,
    )


@app.exception_handler(PyMongoError)
async def profile_store_error_handler(request: Request, exc: PyMongoError):
    """Profile store outages are transient, like SQL connection failures."""
    logger.warning("Profile store error on %s: %s", request.url.path, exc)
    error = TransientIO()
    return JSONResponse(
        status_code=error.status_code,
        content={"detail": error.message, "error": error.code},
    )


# Include API routes
app.include_router(api_router, prefix="/api")


# Startup event
@app.on_event("startup")
async def startup_event():
    """Create SQL tables and MongoDB indexes."""
    if settings.create_tables_on_startup:
        init_db()
        logger.info("SQL tables ready")
    try:
        init_mongo_indexes()
    except PyMongoError as e:
        # Profiles degrade to "no company name"; the core keeps working
        logger.warning("MongoDB index initialization failed: %s", e)


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Career Connect shutting down")


@app.get("/", tags=["Health"])
async def root():
    return {"status": "healthy", "app": "Career Connect", "version": __version__, "docs": "/docs"}


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    from career_connect.db.database import test_database_connection
    from career_connect.db.mongodb import test_mongo_connection

    return {
        "status": "healthy",
        "database": "connected" if test_database_connection() else "disconnected",
        "mongodb": "connected" if test_mongo_connection() else "disconnected"
    }
