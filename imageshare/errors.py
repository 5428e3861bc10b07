from __future__ import annotations

from typing import List, Optional

from fastapi import status


class ImageShareError(Exception):
    """Base class for failures reported to the caller of the post service."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"message": self.message}


class ValidationError(ImageShareError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, errors: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.errors = errors or [message]

    def to_dict(self) -> dict:
        return {"message": self.message, "errors": self.errors}


class NotFoundError(ImageShareError):
    status_code = status.HTTP_404_NOT_FOUND


class StorageError(ImageShareError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class MalformedRequestError(ImageShareError):
    status_code = status.HTTP_400_BAD_REQUEST
