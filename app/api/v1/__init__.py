"""
API v1 Router
"""

from fastapi import APIRouter
from . import access, catalog, insights, profiles, subscriptions

router = APIRouter()

router.include_router(catalog.router)
router.include_router(access.router, prefix="/access", tags=["Access"])
router.include_router(subscriptions.router, prefix="/subscriptions", tags=["Subscriptions"])
router.include_router(insights.router, prefix="/insights", tags=["Insights"])
router.include_router(profiles.router, prefix="/profiles")


@router.get("/", tags=["API"])
async def api_root():
    """API root — returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/categories",
            "/items",
            "/access",
            "/subscriptions",
            "/insights",
            "/profiles",
        ],
    }
