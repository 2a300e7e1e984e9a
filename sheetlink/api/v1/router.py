from fastapi import APIRouter

from sheetlink.api.v1.endpoints import plans

# Create API router
api_router = APIRouter()

api_router.include_router(plans.router, prefix="/plans", tags=["Plans"])

__all__ = ["api_router"]
