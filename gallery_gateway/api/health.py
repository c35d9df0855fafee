"""
Health check endpoint.
Verifies the gallery bucket is reachable.
"""
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from gallery_gateway.api.dependencies import get_store
from gallery_gateway.storage.s3_client import S3ImageStore, StorageError

router = APIRouter()


@router.get("")
def health_check(store: S3ImageStore = Depends(get_store)):
    """
    Health check endpoint.
    Returns status of the storage bucket connection.
    """
    health_status = {
        "status": "healthy",
        "storage": "unknown",
        "bucket": store.bucket
    }

    try:
        store.head_bucket()
        health_status["storage"] = "connected"
    except StorageError as e:
        health_status["storage"] = f"error: {e.code or 'unavailable'}"
        health_status["status"] = "unhealthy"

    if health_status["status"] == "unhealthy":
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=health_status)

    return health_status
