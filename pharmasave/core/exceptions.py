"""Domain errors raised by services and translated to HTTP responses by the API layer."""

from typing import Any, Dict, Optional


class PharmaSaveError(Exception):
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(PharmaSaveError):
    status_code = 404


class PermissionDeniedError(PharmaSaveError):
    status_code = 403


class ValidationFailedError(PharmaSaveError):
    status_code = 422


class ConflictError(PharmaSaveError):
    status_code = 409


class InsufficientFundsError(PharmaSaveError):
    status_code = 400
