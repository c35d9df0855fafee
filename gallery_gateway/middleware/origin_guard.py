"""
Origin allow-list enforcement.

CORSMiddleware only decides which CORS headers to send; a simple request
from a foreign origin would still reach the route. This middleware turns
a disallowed Origin into a 403 before any handler runs. Requests without
an Origin header (curl, server-to-server) pass through.
"""
import logging
import re
from typing import Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from gallery_gateway.utils.logging import log_origin_rejected
from gallery_gateway.utils.metrics import origin_rejections_total

logger = logging.getLogger(__name__)

# localhost and 127.0.0.1 on any port
LOOPBACK_ORIGIN_REGEX = r"^http://(localhost|127\.0\.0\.1)(:\d+)?$"
_LOOPBACK_ORIGIN = re.compile(LOOPBACK_ORIGIN_REGEX)


def is_origin_allowed(origin: str, allowed_origins: Iterable[str]) -> bool:
    """True for listed origins and any loopback origin."""
    return origin in allowed_origins or bool(_LOOPBACK_ORIGIN.match(origin))


class OriginGuardMiddleware(BaseHTTPMiddleware):
    """Reject requests whose Origin is neither listed nor loopback."""

    def __init__(self, app, allowed_origins: Iterable[str] = ()):
        super().__init__(app)
        self.allowed_origins = frozenset(allowed_origins)

    async def dispatch(self, request: Request, call_next):
        origin = request.headers.get("origin")

        if origin and not is_origin_allowed(origin, self.allowed_origins):
            origin_rejections_total.inc()
            log_origin_rejected(logger, origin=origin, path=request.url.path)
            return JSONResponse(
                status_code=403,
                content={"message": f"Not allowed by CORS: {origin}"},
            )

        return await call_next(request)
