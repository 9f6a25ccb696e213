"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from app.api.routes import auth, teams, hotels, accommodations, dashboard

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(teams.router)
api_router.include_router(hotels.clusters_router)
api_router.include_router(hotels.router)
api_router.include_router(accommodations.router)
api_router.include_router(dashboard.router)
