"""
Production logging utility for structured JSON logging.

Provides event-specific logging functions with mandatory fields:
- timestamp (ISO8601)
- level
- service
- event

Optional fields (included when applicable):
- operation
- key
- count
- duration_ms

Usage:
    from gallery_gateway.utils.logging import configure_logging, log_storage_failure

    configure_logging('gallery-gateway', 'INFO')
    log_storage_failure(logger, operation='delete', error='AccessDenied', key='gallery/a.png')
"""
import logging
import sys
from typing import Optional, Dict, Any
from pythonjsonlogger import jsonlogger


class StructuredLogger:
    """Structured JSON logger with mandatory fields."""

    _service_name = None
    _configured = False

    @classmethod
    def configure(cls, service_name: str, log_level: str = "INFO"):
        """
        Configure structured JSON logging for the application.

        Args:
            service_name: Service identifier
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        if cls._configured:
            return  # Already configured

        cls._service_name = service_name

        # Remove default handlers
        root_logger = logging.getLogger()
        root_logger.handlers = []

        formatter = jsonlogger.JsonFormatter(
            '%(timestamp)s %(levelname)s %(name)s %(message)s',
            timestamp=True,
            json_ensure_ascii=False
        )

        # Console handler (stdout is collected by the host platform)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)

        root_logger.addHandler(handler)
        root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

        # Add service name to all log records via filter
        class ServiceFilter(logging.Filter):
            def filter(self, record):
                record.service = cls._service_name
                return True

        handler.addFilter(ServiceFilter())
        cls._configured = True


def _build_log_extra(
    event: str,
    operation: Optional[str] = None,
    key: Optional[str] = None,
    count: Optional[int] = None,
    duration_ms: Optional[float] = None,
    **kwargs
) -> Dict[str, Any]:
    """
    Build extra fields for structured logging.

    Args:
        event: Event name (mandatory)
        operation: Optional storage operation name
        key: Optional object key or prefix
        count: Optional number of objects involved
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields

    Returns:
        Dictionary of extra fields
    """
    extra = {
        "event": event,
        **kwargs
    }

    if operation:
        extra["operation"] = operation
    if key:
        extra["key"] = key
    if count is not None:
        extra["count"] = count
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)

    return extra


# Storage event functions

def log_storage_request(
    logger: logging.Logger,
    operation: str,
    key: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """
    Log a completed storage backend call.

    Args:
        logger: Logger instance
        operation: Operation name (upload, list, delete, delete_batch) (required)
        key: Optional object key or prefix
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="storage_request",
        operation=operation,
        key=key,
        duration_ms=duration_ms,
        **kwargs
    )

    logger.info(f"Storage request: {operation}", extra=extra)


def log_storage_failure(
    logger: logging.Logger,
    operation: str,
    error: str,
    key: Optional[str] = None,
    code: Optional[str] = None,
    duration_ms: Optional[float] = None,
    include_traceback: bool = False,
    **kwargs
):
    """
    Log a failed storage backend call.

    Args:
        logger: Logger instance
        operation: Operation name (required)
        error: Error message (required)
        key: Optional object key or prefix
        code: Optional backend error code
        duration_ms: Optional duration in milliseconds
        include_traceback: Whether to include stack trace
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="storage_failure",
        operation=operation,
        key=key,
        duration_ms=duration_ms,
        error=str(error),
        **kwargs
    )
    if code:
        extra["code"] = code

    message = f"Storage failure: {operation} ({key or '-'}) - {error}"

    if include_traceback:
        exc_info = sys.exc_info()
        if exc_info[0] is not None:
            logger.error(message, extra=extra, exc_info=exc_info)
            return
    logger.error(message, extra=extra)


# Gallery event functions

def log_images_uploaded(
    logger: logging.Logger,
    keys: list,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """Log a successful upload batch."""
    extra = _build_log_extra(
        event="images_uploaded",
        count=len(keys),
        duration_ms=duration_ms,
        keys=keys,
        **kwargs
    )

    logger.info(f"Uploaded {len(keys)} image(s)", extra=extra)


def log_images_listed(
    logger: logging.Logger,
    prefix: str,
    count: int,
    skipped: int = 0,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """Log a gallery listing, including how many folder markers were skipped."""
    extra = _build_log_extra(
        event="images_listed",
        key=prefix,
        count=count,
        duration_ms=duration_ms,
        skipped=skipped,
        **kwargs
    )

    logger.info(f"Listed {count} image(s) under {prefix}", extra=extra)


def log_images_deleted(
    logger: logging.Logger,
    deleted: int,
    failed: int = 0,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """
    Log a delete (single or batch).

    Partial failures are logged as warnings.
    """
    extra = _build_log_extra(
        event="images_deleted",
        count=deleted,
        duration_ms=duration_ms,
        failed=failed,
        **kwargs
    )

    message = f"Deleted {deleted} image(s)"
    if failed:
        logger.warning(f"{message}, {failed} failed", extra=extra)
    else:
        logger.info(message, extra=extra)


def log_origin_rejected(logger: logging.Logger, origin: str, path: str, **kwargs):
    """Log a request rejected by the origin allow-list."""
    extra = _build_log_extra(
        event="origin_rejected",
        origin=origin,
        path=path,
        **kwargs
    )

    logger.warning(f"CORS: origin not allowed - {origin}", extra=extra)


def log_upload_rejected(logger: logging.Logger, reason: str, **kwargs):
    """Log an upload refused before its body was read."""
    extra = _build_log_extra(
        event="upload_rejected",
        operation="upload",
        reason=reason,
        **kwargs
    )

    logger.warning(f"Upload rejected: {reason}", extra=extra)


def configure_logging(service_name: str, log_level: str = "INFO"):
    """Configure logging (alias for StructuredLogger.configure)."""
    StructuredLogger.configure(service_name, log_level)
