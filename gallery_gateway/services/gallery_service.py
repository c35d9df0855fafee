"""
Gallery service: the gateway operations behind the HTTP routes.

Every operation validates its input, makes one kind of storage call and
maps the outcome into the gateway error taxonomy. Nothing is cached and
nothing is retried; a backend failure surfaces on the first attempt.
"""
import logging
import mimetypes
import os
import re
import time
from dataclasses import dataclass
from typing import Any, BinaryIO, Callable, List, Optional

from gallery_gateway.config import Settings
from gallery_gateway.errors import (
    InvalidInputError,
    NoFilesError,
    NotFoundError,
    PayloadTooLargeError,
    StorageFailureError,
    TooManyFilesError,
)
from gallery_gateway.schemas.image import BatchDeleteError, BatchDeleteResult
from gallery_gateway.storage.s3_client import S3ImageStore, StorageError
from gallery_gateway.utils.logging import (
    log_images_deleted,
    log_images_listed,
    log_images_uploaded,
    log_storage_failure,
    log_storage_request,
)
from gallery_gateway.utils.metrics import (
    images_deleted_total,
    images_uploaded_total,
    storage_failures_total,
    storage_latency_seconds,
    storage_requests_total,
)

logger = logging.getLogger(__name__)

# Anything that is not a word character, dot or dash becomes "_"
_UNSAFE_KEY_CHARS = re.compile(r"[^\w.\-]+")

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass
class IncomingFile:
    """One file of an upload batch, independent of the web framework."""
    filename: str
    stream: BinaryIO
    content_type: Optional[str] = None
    size: Optional[int] = None


def sanitize_basename(filename: str) -> str:
    """
    Reduce a client file name to a key-safe base name without extension.

    Directory components (either separator) are dropped, unsafe characters
    are replaced with "_". Returns "file" when nothing usable remains.
    """
    name = re.split(r"[\\/]", filename or "")[-1]
    stem, _ = os.path.splitext(name)
    stem = _UNSAFE_KEY_CHARS.sub("_", stem).strip("._")
    return stem or "file"


def file_extension(filename: str) -> str:
    """Extension of the client file name, including the dot ("" if none)."""
    name = re.split(r"[\\/]", filename or "")[-1]
    _, ext = os.path.splitext(name)
    return _UNSAFE_KEY_CHARS.sub("", ext)


def build_object_key(namespace: str, filename: str, timestamp_ms: int, duplicate: int = 0) -> str:
    """
    <namespace><unix-ms>-<sanitized-basename><ext>

    A non-zero duplicate count is appended to the base name
    ("<unix-ms>-<basename>-<n><ext>") so that repeated names within one
    batch do not overwrite each other.
    """
    stem = sanitize_basename(filename)
    if duplicate:
        stem = f"{stem}-{duplicate}"
    return f"{namespace}{timestamp_ms}-{stem}{file_extension(filename)}"


def detect_content_type(filename: str, declared: Optional[str] = None) -> str:
    """Guess from the file name, then trust the client, then fall back."""
    guessed, _ = mimetypes.guess_type(filename or "")
    return guessed or declared or DEFAULT_CONTENT_TYPE


def _stream_size(stream: BinaryIO) -> int:
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


def _now_ms() -> int:
    return int(time.time() * 1000)


class GalleryService:
    """
    Upload, list and delete gallery images in one S3 bucket.

    All managed keys live under settings.namespace; callers pass keys
    relative to that prefix.
    """

    def __init__(
        self,
        store: S3ImageStore,
        config: Settings,
        clock: Callable[[], int] = _now_ms,
    ):
        self.store = store
        self.config = config
        self.namespace = config.namespace
        self._clock = clock

    # ---------- helpers ---------- #

    def _full_key(self, key: str) -> str:
        return f"{self.namespace}{key}"

    def _relative_key(self, key: str) -> str:
        if key.startswith(self.namespace):
            return key[len(self.namespace):]
        return key

    def _record(self, operation: str, started: float, key: Optional[str] = None) -> None:
        elapsed = time.perf_counter() - started
        storage_requests_total.labels(operation=operation).inc()
        storage_latency_seconds.labels(operation=operation).observe(elapsed)
        log_storage_request(logger, operation, key=key, duration_ms=elapsed * 1000)

    def _fail(self, error: StorageError, started: float) -> None:
        storage_failures_total.labels(operation=error.operation).inc()
        log_storage_failure(
            logger,
            operation=error.operation,
            error=error.message,
            key=error.key,
            code=error.code,
            duration_ms=(time.perf_counter() - started) * 1000,
        )

    def _unused_key(self, filename: str, taken: List[str]) -> str:
        timestamp_ms = self._clock()
        duplicate = 0
        key = build_object_key(self.namespace, filename, timestamp_ms)
        while key in taken:
            duplicate += 1
            key = build_object_key(self.namespace, filename, timestamp_ms, duplicate)
        return key

    def check_upload_limits(self, files: List[IncomingFile]) -> None:
        """
        Enforce the batch constraints before anything reaches storage.

        Raises:
            NoFilesError: batch is empty
            TooManyFilesError: more than max_files_per_upload files
            PayloadTooLargeError: a file is larger than max_file_size_bytes
        """
        if not files:
            raise NoFilesError()

        limit = self.config.max_files_per_upload
        if len(files) > limit:
            raise TooManyFilesError(f"At most {limit} files can be uploaded at once.")

        max_size = self.config.max_file_size_bytes
        for incoming in files:
            size = incoming.size if incoming.size is not None else _stream_size(incoming.stream)
            if size > max_size:
                raise PayloadTooLargeError(
                    f"File '{incoming.filename}' exceeds the {max_size // (1024 * 1024)} MiB limit."
                )

    # ---------- operations ---------- #

    def upload_images(self, files: List[IncomingFile]) -> List[str]:
        """
        Store a batch of images under the gallery prefix.

        Files are streamed one after another. A failure stops the batch;
        files already stored stay in the bucket.

        Returns:
            Public URL of each stored image, in input order
        """
        self.check_upload_limits(files)

        started_batch = time.perf_counter()
        urls = []
        keys = []
        for incoming in files:
            key = self._unused_key(incoming.filename, keys)
            content_type = detect_content_type(incoming.filename, incoming.content_type)

            started = time.perf_counter()
            try:
                url = self.store.upload_fileobj(incoming.stream, key, content_type)
            except StorageError as e:
                self._fail(e, started)
                raise StorageFailureError("An error occurred while uploading images.") from e
            self._record("upload", started, key=key)

            urls.append(url)
            keys.append(key)

        images_uploaded_total.inc(len(keys))
        log_images_uploaded(logger, keys, duration_ms=(time.perf_counter() - started_batch) * 1000)
        return urls

    def list_image_urls(self) -> List[str]:
        """
        Public URLs of every image under the prefix, newest first.

        Zero-byte entries are folder markers and are skipped. Entries with
        the same timestamp keep the backend order.
        """
        started = time.perf_counter()
        try:
            objects = self.store.list_objects(self.namespace)
        except StorageError as e:
            self._fail(e, started)
            raise StorageFailureError("An error occurred while loading images.") from e
        self._record("list", started, key=self.namespace)

        images = [obj for obj in objects if obj.size > 0]
        images.sort(key=lambda obj: obj.last_modified, reverse=True)

        log_images_listed(
            logger,
            prefix=self.namespace,
            count=len(images),
            skipped=len(objects) - len(images),
        )
        return [self.store.public_url(obj.key) for obj in images]

    def delete_image(self, key: str) -> str:
        """
        Delete one image by its key relative to the prefix.

        Returns:
            The full object key that was deleted

        Raises:
            NotFoundError: backend reports the key does not exist
            StorageFailureError: any other backend error
        """
        if not key:
            raise InvalidInputError("An image key is required.")

        full_key = self._full_key(key)
        started = time.perf_counter()
        try:
            self.store.delete_object(full_key)
        except StorageError as e:
            self._fail(e, started)
            if e.is_not_found:
                raise NotFoundError() from e
            raise StorageFailureError("An error occurred while deleting the image.") from e
        self._record("delete", started, key=full_key)

        images_deleted_total.inc()
        log_images_deleted(logger, deleted=1, key=full_key)
        return full_key

    @staticmethod
    def parse_batch_keys(payload: Any) -> List[str]:
        """
        Pull the key list out of a batch delete body.

        Raises:
            InvalidInputError: body is not an object, or keys is missing,
                not a list, empty, or holds anything but non-empty strings
        """
        keys = payload.get("keys") if isinstance(payload, dict) else None
        if not keys or not isinstance(keys, list):
            raise InvalidInputError("The list of image keys to delete is invalid.")
        if not all(isinstance(key, str) and key for key in keys):
            raise InvalidInputError("Every image key must be a non-empty string.")
        return keys

    def delete_images(self, keys: List[str]) -> BatchDeleteResult:
        """
        Delete several images with one batch call.

        Returns:
            BatchDeleteResult; a non-empty errors list means partial success

        Raises:
            InvalidInputError: keys is empty
            StorageFailureError: the batch call itself failed
        """
        if not keys:
            raise InvalidInputError("The list of image keys to delete is invalid.")

        full_keys = [self._full_key(key) for key in keys]
        started = time.perf_counter()
        try:
            deleted, errors = self.store.delete_objects(full_keys)
        except StorageError as e:
            self._fail(e, started)
            raise StorageFailureError("An error occurred while deleting images.") from e
        self._record("delete_batch", started)

        result = BatchDeleteResult(
            deleted=[self._relative_key(key) for key in deleted],
            errors=[
                BatchDeleteError(
                    key=self._relative_key(error["Key"]),
                    code=error["Code"],
                    message=error["Message"],
                )
                for error in errors
            ],
        )

        images_deleted_total.inc(len(result.deleted))
        log_images_deleted(logger, deleted=len(result.deleted), failed=len(result.errors))
        if result.errors:
            logger.warning(
                "Batch delete partially failed",
                extra={
                    "event": "batch_delete_partial",
                    "errors": [error.model_dump() for error in result.errors],
                },
            )
        return result
