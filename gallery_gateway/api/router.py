"""
API router aggregator.
Includes all route modules.
"""
from fastapi import APIRouter
from gallery_gateway.api import health, images

api_router = APIRouter()

# Gallery routes are served at the root so client paths stay /upload, /images, ...
api_router.include_router(images.router, tags=["images"])
api_router.include_router(health.router, prefix="/health", tags=["health"])
