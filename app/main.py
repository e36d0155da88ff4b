"""
University Application Platform - Main Application

FastAPI backend with:
- MongoDB for universities, applications and staff users
- GPA / IELTS eligibility checks and a 30 day duplicate guard
- JWT authentication for staff and admin actions
- Browser frontend served from /frontend (if present)

Run: uvicorn app.main:app --reload
"""

import logging
import os
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pymongo import MongoClient

from app import __version__
from app.api.routes import api_router
from app.core.config import Settings, get_settings
from app.core.errors import register_exception_handlers
from app.core.log import add_access_log, configure_logging
from app.db.mongodb import create_mongo_client, init_mongo_indexes, test_mongo_connection

logger = logging.getLogger(__name__)

# Get the project root directory
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
FRONTEND_DIR = os.path.join(PROJECT_ROOT, "frontend", "dist")

DESCRIPTION = """
Browse universities, compare them, check eligibility and apply.

## Features
- **Universities**: Filter, search, paginate and compare (up to 5)
- **Eligibility**: GPA and IELTS against each university's minimums
- **Applications**: Public submission, staff review workflow with status history
- **Statistics**: Aggregated overviews of universities and applications
- **Users**: JWT login for admins, reviewers and admission officers
"""


def create_app(settings: Optional[Settings] = None, mongo_client: Optional[MongoClient] = None) -> FastAPI:
    """
    Build the FastAPI app.

    The MongoDB client is created on startup (unless one is passed in),
    kept on app.state and closed on shutdown.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = mongo_client or create_mongo_client(settings)
        app.state.mongo_client = client
        app.state.mongo_db = client[settings.mongodb_db]
        app.state.started_at = time.monotonic()
        try:
            init_mongo_indexes(app.state.mongo_db)
        except Exception as e:
            logger.warning("MongoDB index initialization failed: %s", e)
        logger.info("Connected to MongoDB database %s", settings.mongodb_db)
        yield
        if mongo_client is None:
            client.close()
            logger.info("MongoDB connection closed")

    app = FastAPI(
        title="University Application Platform",
        description=DESCRIPTION,
        version=__version__,
        debug=settings.debug,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # CORS restricted to the configured origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    add_access_log(app)
    register_exception_handlers(app)

    # Include API routes
    app.include_router(api_router, prefix="/api")

    @app.get("/api/health", tags=["Health"])
    def health_check():
        """Health check with MongoDB status and uptime."""
        return {
            "status": "success",
            "message": "University Application API is running",
            "mongodb": "connected" if test_mongo_connection(app.state.mongo_client) else "disconnected",
            "uptime": round(time.monotonic() - app.state.started_at, 3),
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    @app.get("/", tags=["Health"])
    def root():
        return {
            "message": "Welcome to University Application API",
            "version": __version__,
            "endpoints": {
                "universities": "/api/universities",
                "applications": "/api/applications",
                "users": "/api/users",
                "health": "/api/health"
            }
        }

    # Serve the built frontend (if present)
    if os.path.exists(FRONTEND_DIR):
        app.mount("/app", StaticFiles(directory=FRONTEND_DIR, html=True), name="frontend")

    return app


app = create_app()
