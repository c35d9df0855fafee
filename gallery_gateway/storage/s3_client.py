"""
Amazon S3 storage client for the gallery bucket.

Thin wrapper around a boto3 S3 client. Every call goes straight to the
bucket with no retries or caching of our own; botocore errors are
re-raised as StorageError carrying the operation and key so callers can
log context and map the failure without touching botocore types.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Dict, List, Optional, Tuple

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from gallery_gateway.config import Settings, settings

logger = logging.getLogger(__name__)

# Error codes S3 uses for a missing object
NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}


@dataclass(frozen=True)
class StoredObject:
    """A single object listed from the bucket."""
    key: str
    size: int
    last_modified: datetime


class StorageError(Exception):
    """A storage backend call failed."""

    def __init__(
        self,
        operation: str,
        key: Optional[str] = None,
        code: Optional[str] = None,
        message: str = "",
    ):
        self.operation = operation
        self.key = key
        self.code = code
        self.message = message
        super().__init__(f"{operation} failed for {key or '-'}: [{code}] {message}")

    @property
    def is_not_found(self) -> bool:
        return self.code in NOT_FOUND_CODES

    @classmethod
    def from_exception(
        cls,
        operation: str,
        exc: Exception,
        key: Optional[str] = None,
    ) -> "StorageError":
        """Build a StorageError from a botocore/boto3 exception."""
        if isinstance(exc, ClientError):
            error = exc.response.get("Error", {})
            return cls(
                operation,
                key=key,
                code=str(error.get("Code", "")) or None,
                message=error.get("Message", str(exc)),
            )
        return cls(operation, key=key, code=type(exc).__name__, message=str(exc))


class S3ImageStore:
    """
    S3 client bound to one bucket and region.

    Builds the public object URL the same way the bucket serves it:
    https://<bucket>.s3.<region>.amazonaws.com/<key>
    """

    def __init__(self, client, bucket: str, region: str):
        self._client = client
        self.bucket = bucket
        self.region = region

    @classmethod
    def from_settings(cls, config: Settings) -> "S3ImageStore":
        """
        Create the boto3 client from settings.

        Inside Lambda the execution role provides credentials, so only the
        region is passed. Locally the access key pair from the environment
        is used when both halves are present.
        """
        client_kwargs = {"region_name": config.aws_region}

        if config.is_lambda:
            logger.info("S3 client initialized for Lambda environment")
        else:
            if config.aws_access_key_id and config.aws_secret_access_key:
                client_kwargs["aws_access_key_id"] = config.aws_access_key_id
                client_kwargs["aws_secret_access_key"] = config.aws_secret_access_key
            logger.info("S3 client initialized for local environment")

        client = boto3.client("s3", **client_kwargs)
        logger.info(f"S3 client bound to bucket: {config.aws_bucket_name}")
        return cls(client, bucket=config.aws_bucket_name, region=config.aws_region)

    def public_url(self, key: str) -> str:
        """Public URL for an object key (key includes the gallery prefix)."""
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def upload_fileobj(self, fileobj: BinaryIO, key: str, content_type: str) -> str:
        """
        Stream a file object to the bucket.

        Returns:
            Public URL of the stored object
        """
        try:
            self._client.upload_fileobj(
                fileobj,
                self.bucket,
                key,
                ExtraArgs={"ContentType": content_type},
            )
        except (ClientError, BotoCoreError, S3UploadFailedError) as e:
            raise StorageError.from_exception("upload", e, key=key) from e

        logger.debug(f"Uploaded {key} ({content_type})")
        return self.public_url(key)

    def list_objects(self, prefix: str) -> List[StoredObject]:
        """
        List every object under prefix, following continuation tokens.
        """
        objects: List[StoredObject] = []
        continuation_token = None

        while True:
            kwargs = {"Bucket": self.bucket, "Prefix": prefix}
            if continuation_token:
                kwargs["ContinuationToken"] = continuation_token

            try:
                response = self._client.list_objects_v2(**kwargs)
            except (ClientError, BotoCoreError) as e:
                raise StorageError.from_exception("list", e, key=prefix) from e

            for item in response.get("Contents", []):
                objects.append(StoredObject(
                    key=item["Key"],
                    size=item.get("Size", 0),
                    last_modified=item["LastModified"],
                ))

            if not response.get("IsTruncated"):
                break
            continuation_token = response.get("NextContinuationToken")

        return objects

    def delete_object(self, key: str) -> None:
        """Delete a single object."""
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StorageError.from_exception("delete", e, key=key) from e

        logger.debug(f"Deleted object {key}")

    def delete_objects(self, keys: List[str]) -> Tuple[List[str], List[Dict[str, str]]]:
        """
        Delete several objects with one DeleteObjects call.

        Runs in non-quiet mode so S3 reports every deleted key.

        Returns:
            Tuple of (deleted keys, per-key errors with Key/Code/Message)
        """
        try:
            response = self._client.delete_objects(
                Bucket=self.bucket,
                Delete={
                    "Objects": [{"Key": key} for key in keys],
                    "Quiet": False,
                },
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError.from_exception("delete_batch", e) from e

        deleted = [item["Key"] for item in response.get("Deleted", [])]
        errors = [
            {
                "Key": error.get("Key", ""),
                "Code": error.get("Code", ""),
                "Message": error.get("Message", ""),
            }
            for error in response.get("Errors", [])
        ]
        return deleted, errors

    def head_bucket(self) -> None:
        """Check the bucket is reachable with the current credentials."""
        try:
            self._client.head_bucket(Bucket=self.bucket)
        except (ClientError, BotoCoreError) as e:
            raise StorageError.from_exception("head_bucket", e) from e


# Singleton instance
_image_store: Optional[S3ImageStore] = None


def get_image_store() -> S3ImageStore:
    """
    Get the singleton S3 store, creating it on first use.

    Returns:
        S3ImageStore bound to the configured bucket
    """
    global _image_store
    if _image_store is None:
        _image_store = S3ImageStore.from_settings(settings)
    return _image_store
