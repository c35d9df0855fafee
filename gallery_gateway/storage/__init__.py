"""
Storage module for the S3 gallery bucket.

The gateway streams uploads through to S3 and never keeps a local copy.
"""
from gallery_gateway.storage.s3_client import get_image_store, S3ImageStore, StorageError, StoredObject

__all__ = ["get_image_store", "S3ImageStore", "StorageError", "StoredObject"]
