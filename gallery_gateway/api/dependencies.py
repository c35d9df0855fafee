"""
Service dependencies shared by the route modules.
"""
from gallery_gateway.config import settings
from gallery_gateway.services.gallery_service import GalleryService
from gallery_gateway.storage.s3_client import S3ImageStore, get_image_store


def get_store() -> S3ImageStore:
    """Process-wide S3 store (built once, never mutated)."""
    return get_image_store()


def get_gallery_service() -> GalleryService:
    """Gallery service bound to the process-wide store."""
    return GalleryService(get_image_store(), settings)
