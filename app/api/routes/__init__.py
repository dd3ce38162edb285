"""
API Routes package.
"""
from fastapi import APIRouter

from app.api.routes.admin import router as admin_router
from app.api.routes.health import router as health_router
from app.api.routes.job_alerts import router as job_alerts_router

# Main API router
api_router = APIRouter()

api_router.include_router(health_router)
api_router.include_router(job_alerts_router)
api_router.include_router(admin_router)

__all__ = [
    "api_router",
    "admin_router",
    "health_router",
    "job_alerts_router",
]
