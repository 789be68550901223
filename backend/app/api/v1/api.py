"""
API v1 router combining all v1 endpoints.
"""
from fastapi import APIRouter
from app.api.v1 import auth, health, results, test_sessions, tests

api_router = APIRouter()

# Include all v1 routers
api_router.include_router(health.router, tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(
    test_sessions.router, prefix="/test-session", tags=["test-session"]
)
api_router.include_router(tests.router, prefix="/tests", tags=["tests"])
api_router.include_router(results.router, prefix="/results", tags=["results"])
