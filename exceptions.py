"""
Error taxonomy shared by the core modules and the HTTP layer.
Every error carries one of the standard error codes from api/error_utils.py.
"""

from typing import Any, Dict, Optional


class EcoNovaError(Exception):
    """Base class for all expected application errors."""
    error_code = "SERVER_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(EcoNovaError):
    """Malformed or missing input to a write operation. Never retried."""
    error_code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(EcoNovaError):
    """A referenced id does not exist."""
    error_code = "NOT_FOUND"
    status_code = 404


class ExternalServiceError(EcoNovaError):
    """The evidence analyzer or the remote API is unreachable or answered with an error."""
    error_code = "EXTERNAL_SERVICE_ERROR"
    status_code = 502


class PersistenceError(EcoNovaError):
    """The local record store failed to read or write. There is no further fallback."""
    error_code = "DATABASE_ERROR"
    status_code = 500
