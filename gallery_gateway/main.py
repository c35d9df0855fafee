"""
FastAPI application entry point.
Sets up the gallery API with logging, upload guard, CORS, origin guard and metrics.

For local development:
    python -m gallery_gateway.main
"""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.exceptions import HTTPException as StarletteHTTPException

from gallery_gateway.config import settings
from gallery_gateway.api.router import api_router
from gallery_gateway.errors import GatewayError
from gallery_gateway.middleware.metrics_middleware import MetricsMiddleware
from gallery_gateway.middleware.origin_guard import LOOPBACK_ORIGIN_REGEX, OriginGuardMiddleware
from gallery_gateway.middleware.upload_guard import UploadGuardMiddleware, max_upload_body_bytes
from gallery_gateway.storage.s3_client import get_image_store
from gallery_gateway.utils.logging import configure_logging

SERVICE_NAME = "gallery-gateway"
VERSION = "0.1.0"

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup/shutdown events.
    - Startup: configure logging, build the S3 client once
    """
    configure_logging(SERVICE_NAME, settings.log_level)

    store = get_image_store()
    logger.info(
        f"Gallery gateway ready (bucket={store.bucket}, prefix={settings.namespace})"
    )

    yield


app = FastAPI(
    title="Gallery Gateway",
    description="Upload, list and delete gallery images stored in S3",
    version=VERSION,
    lifespan=lifespan
)


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError):
    """Render gateway errors as {"message": ...} with their status."""
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Framework errors (unknown route, bad method, unparseable form) use the same shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and parameters are invalid input (400), not 422."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Invalid request.", "errors": jsonable_encoder(exc.errors())},
    )


# Token and size checks for uploads, before the multipart body is parsed
app.add_middleware(UploadGuardMiddleware, max_body_bytes=max_upload_body_bytes(settings))

# CORS headers for allowed origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_origin_regex=LOOPBACK_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
    allow_headers=["*"],
)

# Rejects every other origin before CORS or routing sees the request
app.add_middleware(OriginGuardMiddleware, allowed_origins=settings.cors_allowed_origins)

# Metrics middleware (outermost, so rejected requests are counted too)
app.add_middleware(MetricsMiddleware)

app.include_router(api_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Gallery Gateway",
        "version": VERSION,
        "environment": settings.environment
    }


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def run():
    """Run a local server (not used inside Lambda)."""
    uvicorn.run(
        "gallery_gateway.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__" and not settings.is_lambda:
    run()
