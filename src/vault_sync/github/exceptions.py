"""Errors raised by the GitHub client."""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Category of a remote failure, used by the sync service to pick a message."""

    AUTHENTICATION = "authentication"
    NOT_FOUND = "not_found"
    NETWORK = "network"
    OTHER = "other"


class RemoteAPIError(Exception):
    """Raised for any failed call to the GitHub API."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.OTHER, status_code: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code


class RefUpdateTimeoutError(RemoteAPIError):
    """Raised when a branch update is not visible before the poll timeout."""

    pass


def kind_for_status(status_code: int) -> ErrorKind:
    if status_code in (401, 403):
        return ErrorKind.AUTHENTICATION
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    return ErrorKind.OTHER
