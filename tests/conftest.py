"""
Test configuration and fixtures.
The S3 client is a MagicMock; no AWS access is needed.
"""
import os

# Set test environment before any imports
os.environ["AWS_BUCKET_NAME"] = "test-bucket"
os.environ["AWS_REGION"] = "ap-northeast-2"
os.environ["ADMIN_TOKEN"] = "test-admin-token"
os.environ["CORS_ALLOWED_ORIGINS"] = '["https://gallery.example.com"]'
os.environ["ENVIRONMENT"] = "test"
os.environ.pop("AWS_LAMBDA_FUNCTION_NAME", None)

import pytest
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator
from unittest.mock import MagicMock

from botocore.exceptions import ClientError
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from gallery_gateway.config import settings
from gallery_gateway.services.gallery_service import GalleryService
from gallery_gateway.storage.s3_client import S3ImageStore


FIXED_NOW_MS = 1718000000000
BASE_TIME = datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def admin_headers() -> dict:
    """Headers carrying the configured admin token."""
    return {"authorization": "test-admin-token"}


@pytest.fixture
def s3_client() -> MagicMock:
    """Mock boto3 S3 client with an empty bucket."""
    client = MagicMock()
    client.list_objects_v2.return_value = {"Contents": [], "IsTruncated": False}
    client.delete_objects.return_value = {"Deleted": [], "Errors": []}
    return client


@pytest.fixture
def store(s3_client: MagicMock) -> S3ImageStore:
    """S3 store bound to the test bucket."""
    return S3ImageStore(s3_client, bucket="test-bucket", region="ap-northeast-2")


@pytest.fixture
def gallery_service(store: S3ImageStore) -> GalleryService:
    """Gallery service with a frozen clock."""
    return GalleryService(store, settings, clock=lambda: FIXED_NOW_MS)


@pytest.fixture
def make_client_error():
    """Factory for botocore ClientError with a given error code."""
    def _make(code: str, operation: str = "DeleteObject", message: str = "backend detail"):
        return ClientError({"Error": {"Code": code, "Message": message}}, operation)
    return _make


@pytest.fixture
def s3_object():
    """Factory for list_objects_v2 Contents entries."""
    def _make(key: str, size: int = 1024, minutes: int = 0) -> dict:
        return {
            "Key": key,
            "Size": size,
            "LastModified": BASE_TIME + timedelta(minutes=minutes),
        }
    return _make


def get_test_app(gallery_service: GalleryService, store: S3ImageStore) -> FastAPI:
    """Create a test FastAPI app with overridden dependencies."""
    from gallery_gateway.main import app
    from gallery_gateway.api.dependencies import get_gallery_service, get_store

    app.dependency_overrides[get_gallery_service] = lambda: gallery_service
    app.dependency_overrides[get_store] = lambda: store

    return app


@pytest.fixture
async def client(gallery_service: GalleryService, store: S3ImageStore) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    app = get_test_app(gallery_service, store)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Clean up overrides
    app.dependency_overrides.clear()
