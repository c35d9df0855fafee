"""
Gateway error taxonomy.

Each error carries the HTTP status and a message that is safe to show to
clients. Backend detail stays in the logs.
"""
from typing import Optional

from fastapi import status


class GatewayError(Exception):
    """Base class for errors rendered as {"message": ...} responses."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthorizedError(GatewayError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not authorized. Check the admin token."


class InvalidInputError(GatewayError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request."


class NoFilesError(InvalidInputError):
    default_message = "No image files were provided."


class TooManyFilesError(InvalidInputError):
    default_message = "Too many files in one upload."


class PayloadTooLargeError(GatewayError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    default_message = "File exceeds the maximum allowed size."


class NotFoundError(GatewayError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "The image to delete was not found."


class StorageFailureError(GatewayError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Storage operation failed."
