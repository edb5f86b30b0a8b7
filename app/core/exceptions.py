"""Custom exceptions."""
from typing import Optional
from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """Resource not found exception."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail or "Resource not found",
        )


class ValidationError(HTTPException):
    """Request is well-formed but references invalid data."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail or "Invalid data",
        )


class PolicyViolationError(HTTPException):
    """Upload rejected by the MIME allow-list or size cap."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail or "Upload policy violation",
        )


class StorageUnavailableError(HTTPException):
    """Object storage call failed; the client may retry."""

    def __init__(
        self,
        detail: Optional[str] = None,
        *,
        key: Optional[str] = None,
        code: Optional[str] = None,
        message: Optional[str] = None,
    ):
        summary = detail or "Object storage unavailable"
        if key or code or message:
            body = {"error": summary, "key": key, "code": code, "message": message}
        else:
            body = summary
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=body)
        self.key = key
        self.code = code
        self.message = message


class ConflictError(HTTPException):
    """Conflict exception."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail or "Resource already exists",
        )
