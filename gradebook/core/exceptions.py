import logging
from typing import Optional

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Internal server error"


class ServiceError(Exception):
    """Base exception for service layer errors."""

    code = "service_error"

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        if code is not None:
            self.code = code


class ValidationError(ServiceError):
    """Missing, malformed or out-of-range input."""

    code = "invalid_value"

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST, code)


class AuthorizationError(ServiceError):
    """Entity outside the caller's class. Reported as 404 so existence is not leaked."""

    code = "not_found_or_denied"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: int = status.HTTP_404_NOT_FOUND,
    ) -> None:
        super().__init__(message, status_code, code)


class NotFoundError(ServiceError):
    code = "not_found"

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND, code)


class ConflictError(ServiceError):
    code = "conflict"

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT, code)


class PersistenceError(ServiceError):
    """Store failure. The in-flight transaction has been rolled back."""

    code = "persistence_error"

    def __init__(self, message: str = "Database error") -> None:
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)


class ExportError(ServiceError):
    """Report generation failure."""

    code = "export_error"

    def __init__(self, message: str = "Gagal membuat file Excel") -> None:
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)


def to_http_exception(e: ServiceError) -> HTTPException:
    """Map a service error to an HTTPException; 5xx details never reach the client."""
    if e.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s: %s", type(e).__name__, e.message, exc_info=e)
        return HTTPException(status_code=e.status_code, detail=GENERIC_SERVER_ERROR)
    return HTTPException(status_code=e.status_code, detail=e.message)
