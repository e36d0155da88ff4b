"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from app.api.routes.university_routes import router as university_router
from app.api.routes.application_routes import router as application_router
from app.api.routes.user_routes import router as user_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(university_router)
api_router.include_router(application_router)
api_router.include_router(user_router)
