"""
Gallery image endpoints.

- POST   /upload        - upload up to 10 images (admin)
- GET    /images        - public URLs of all images, newest first
- DELETE /image/{key}   - delete one image (admin)
- DELETE /images/batch  - delete several images in one call (admin)

Handlers are plain functions: FastAPI runs them in its thread pool, so
the blocking boto3 calls never stall the event loop.
"""
from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, File, UploadFile, status
from fastapi.responses import JSONResponse

from gallery_gateway.api.dependencies import get_gallery_service
from gallery_gateway.auth.dependencies import require_admin
from gallery_gateway.schemas.image import (
    BatchDeleteResponse,
    MessageResponse,
    UploadResponse,
)
from gallery_gateway.services.gallery_service import GalleryService, IncomingFile

router = APIRouter()

ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": MessageResponse, "description": "Invalid input"},
    status.HTTP_403_FORBIDDEN: {"model": MessageResponse, "description": "Bad or missing admin token"},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": MessageResponse, "description": "Storage failure"},
}


@router.post(
    "/upload",
    response_model=UploadResponse,
    dependencies=[Depends(require_admin)],
    responses={
        **ERROR_RESPONSES,
        status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: {"model": MessageResponse, "description": "File too large"},
    },
)
def upload_images(
    images: Optional[List[UploadFile]] = File(default=None, description="Image files (field 'images')"),
    service: GalleryService = Depends(get_gallery_service),
):
    """
    Upload a batch of images to the gallery.

    Each file is stored as gallery/<unix-ms>-<name><ext> with its content
    type detected from the file name. Requires the admin token in the
    `authorization` header.
    """
    files = [
        IncomingFile(
            filename=upload.filename or "",
            stream=upload.file,
            content_type=upload.content_type,
            size=upload.size,
        )
        for upload in images or []
    ]

    urls = service.upload_images(files)

    return UploadResponse(
        message=f"{len(urls)} image(s) uploaded successfully.",
        count=len(urls),
        urls=urls,
    )


@router.get(
    "/images",
    response_model=List[str],
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: ERROR_RESPONSES[500]},
)
def list_images(service: GalleryService = Depends(get_gallery_service)):
    """
    List public URLs of every image, most recently modified first.

    Returns [] when the gallery is empty.
    """
    return service.list_image_urls()


@router.delete(
    "/image/{key}",
    response_model=MessageResponse,
    dependencies=[Depends(require_admin)],
    responses={
        **ERROR_RESPONSES,
        status.HTTP_404_NOT_FOUND: {"model": MessageResponse, "description": "Image not found"},
    },
)
def delete_image(key: str, service: GalleryService = Depends(get_gallery_service)):
    """
    Delete one image. `key` is relative to the gallery prefix.
    """
    full_key = service.delete_image(key)
    return MessageResponse(message=f"Image deleted successfully: {full_key}")


@router.delete(
    "/images/batch",
    response_model=BatchDeleteResponse,
    response_model_exclude_defaults=True,
    dependencies=[Depends(require_admin)],
    responses={
        **ERROR_RESPONSES,
        status.HTTP_207_MULTI_STATUS: {"model": BatchDeleteResponse, "description": "Partial success"},
    },
)
def delete_images_batch(
    payload: Any = Body(default=None, examples=[{"keys": ["1718000000000-cat.png"]}]),
    service: GalleryService = Depends(get_gallery_service),
):
    """
    Delete several images with one storage call.

    Returns 200 when every key was deleted and 207 with per-key errors
    when only some were.
    """
    keys = service.parse_batch_keys(payload)
    result = service.delete_images(keys)

    if result.is_partial:
        body = BatchDeleteResponse(
            message="Some images could not be deleted.",
            deleted=result.deleted,
            errors=result.errors,
        )
        return JSONResponse(
            status_code=status.HTTP_207_MULTI_STATUS,
            content=body.model_dump(),
        )

    return BatchDeleteResponse(
        message=f"{len(result.deleted)} image(s) deleted successfully.",
        deleted=result.deleted,
    )
