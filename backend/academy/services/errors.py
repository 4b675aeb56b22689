# academy/services/errors.py
"""Domain errors raised by the service layer.

The app-level exception handler maps each subclass to an HTTP status code.
"""


class ServiceError(Exception):
    """Base class for service-layer failures."""


class ValidationError(ServiceError):
    """Input rejected before the store was touched."""


class PermissionDenied(ServiceError):
    """Acting user lacks the capability for the operation."""


class NotFound(ServiceError):
    """A directly requested row does not exist."""


class StoreError(ServiceError):
    """The backing store rejected a write; the transaction was rolled back."""
