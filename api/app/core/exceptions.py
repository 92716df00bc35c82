"""
Custom exceptions for the application.
"""


class VodexException(Exception):
    """Base exception for all VoDex Gym application exceptions."""
    pass


class ValidationError(VodexException):
    """Raised when validation fails, before any state is changed."""
    pass


class NotFoundError(VodexException):
    """Raised when a requested resource is not found."""
    pass


class ConflictError(VodexException):
    """Raised when there's a conflict (e.g., a concurrent update or a closed session)."""
    pass
