"""
Business logic services.
"""
from gallery_gateway.services.gallery_service import GalleryService, IncomingFile

__all__ = [
    "GalleryService",
    "IncomingFile",
]
