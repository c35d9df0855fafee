"""
Upload admission checks that run before the multipart body is read.

FastAPI parses the whole form before route dependencies run, so
require_admin alone would let an anonymous caller stream an unbounded
body to disk first. This middleware answers POST /upload with 403 for a
bad token and 413 for a declared Content-Length above the batch limit,
without touching the body. require_admin still runs on the route.
"""
import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from gallery_gateway.auth.dependencies import is_admin_token
from gallery_gateway.config import Settings
from gallery_gateway.errors import InvalidInputError, PayloadTooLargeError, UnauthorizedError
from gallery_gateway.utils.logging import log_upload_rejected

logger = logging.getLogger(__name__)

UPLOAD_PATH = "/upload"

# Boundaries, part headers and field names on top of the file bytes
MULTIPART_FRAMING_BYTES = 1024 * 1024


def max_upload_body_bytes(config: Settings) -> int:
    """Largest request body a full batch of maximum-size files can need."""
    return config.max_files_per_upload * config.max_file_size_bytes + MULTIPART_FRAMING_BYTES


class UploadGuardMiddleware(BaseHTTPMiddleware):
    """Check token and declared size of POST /upload before the body is read."""

    def __init__(self, app, max_body_bytes: int):
        super().__init__(app)
        self.max_body_bytes = max_body_bytes

    async def dispatch(self, request: Request, call_next):
        if request.method != "POST" or request.url.path != UPLOAD_PATH:
            return await call_next(request)

        if not is_admin_token(request.headers.get("authorization")):
            log_upload_rejected(logger, "unauthorized")
            error = UnauthorizedError()
            return JSONResponse(status_code=error.status_code, content={"message": error.message})

        content_length = request.headers.get("content-length")
        if content_length is not None:
            try:
                declared = int(content_length)
            except ValueError:
                error = InvalidInputError("Invalid Content-Length header.")
                return JSONResponse(status_code=error.status_code, content={"message": error.message})

            if declared > self.max_body_bytes:
                log_upload_rejected(
                    logger, "too_large", content_length=declared, limit=self.max_body_bytes
                )
                error = PayloadTooLargeError("Upload exceeds the maximum request size.")
                return JSONResponse(status_code=error.status_code, content={"message": error.message})

        return await call_next(request)
