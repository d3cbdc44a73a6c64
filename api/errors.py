"""
Error kinds raised by the books API and the HTTP status each maps to.
"""

from typing import Dict, Optional

from fastapi import status


class BookAPIError(Exception):
    """Base class for errors that map to an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None


class AuthenticationFailure(BookAPIError):
    """Missing or invalid basic credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str, realm: Optional[str] = None):
        super().__init__(message)
        self.realm = realm

    @property
    def headers(self) -> Dict[str, str]:
        challenge = "Basic"
        if self.realm:
            challenge = f'Basic realm="{self.realm}"'
        return {"WWW-Authenticate": challenge}


class ValidationFailure(BookAPIError):
    """Request body failed parsing or validation."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(BookAPIError):
    """Requested book does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class BackendFailure(BookAPIError):
    """The storage backend failed; the message is safe to return to clients."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
