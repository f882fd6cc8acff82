"""
Classified failures returned by every ToDo service operation.

Each class carries a stable ``code`` (sent to clients in error bodies) and the
HTTP status the transport maps it to.
"""
from __future__ import annotations

from typing import Optional


class ServiceError(Exception):
    """Base class for classified ToDo service failures."""

    code: str = "unknown"
    status_code: int = 500

    def __init__(self, message: str, recoverable: bool = False) -> None:
        """
        Args:
            message: human-readable description, including any underlying cause
            recoverable: whether the caller can succeed by retrying or fixing input
        """
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable


class UnsupportedVersionError(ServiceError):
    """The caller asked for an API version this service does not implement."""

    code = "unsupported-version"
    status_code = 501

    def __init__(self, supported: str, requested: str) -> None:
        super().__init__(
            f"unsupported API version: service implements API version '{supported}', "
            f"but asked for API version '{requested}'",
            recoverable=True,
        )
        self.supported = supported
        self.requested = requested


class InvalidArgumentError(ServiceError):
    code = "invalid-argument"
    status_code = 400

    def __init__(self, message: str, recoverable: bool = True) -> None:
        super().__init__(message, recoverable=recoverable)


class NotFoundError(ServiceError):
    code = "not-found"
    status_code = 404

    def __init__(self, todo_id: int) -> None:
        super().__init__(f"ToDo with ID='{todo_id}' is not found", recoverable=True)
        self.todo_id = todo_id


class ConnectionFailureError(ServiceError):
    """The store could not supply a usable connection."""

    code = "connection-failure"
    status_code = 503

    def __init__(self, message: str) -> None:
        super().__init__(message, recoverable=True)


class UnknownError(ServiceError):
    """Any store failure not otherwise classified; ``cause`` holds the original error."""

    code = "unknown"
    status_code = 500

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        if cause is not None:
            message = f"{message}-> {cause}"
        super().__init__(message, recoverable=False)
        self.cause = cause
