"""
Service-layer exceptions.

Raised when a request is rejected or cannot be persisted. The API layer
translates each one into a ``{"success": false, "message": ...}`` response
with the exception's status code.
"""


class ServiceError(Exception):
    """Base class for errors surfaced to API callers."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(ServiceError):
    """A required field is missing, zero or negative."""
    status_code = 400


class InvalidReference(ServiceError):
    """The product id in an order does not resolve to a product."""
    status_code = 400


class InsufficientStock(ServiceError):
    """The requested quantity exceeds the product's available stock."""
    status_code = 400


class NotFound(ServiceError):
    """The order or product addressed by the URL does not exist."""
    status_code = 404


class PersistenceError(ServiceError):
    """The database commit failed; the transaction was rolled back."""
    status_code = 500
