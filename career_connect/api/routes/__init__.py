"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from career_connect.api.routes.auth_routes import router as auth_router
from career_connect.api.routes.profile_routes import router as profile_router
from career_connect.api.routes.conversation_routes import router as conversation_router
from career_connect.api.routes.interview_routes import router as interview_router
from career_connect.api.routes.realtime_routes import router as realtime_router
from career_connect.api.routes.assistant_routes import router as assistant_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(profile_router)
api_router.include_router(conversation_router)
api_router.include_router(interview_router)
api_router.include_router(realtime_router)
api_router.include_router(assistant_router)
