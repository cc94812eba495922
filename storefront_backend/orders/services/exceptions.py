# orders/services/exceptions.py

"""
ORDER SERVICE ERRORS

Centralized domain errors for order services.
Every error carries a stable `code` and the HTTP status the API maps it to.
"""


class OrderServiceError(Exception):
    """Base exception for all order service failures."""

    code = "ORDER_ERROR"
    http_status = 400
    default_message = "Order operation failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class OrderValidationError(OrderServiceError):
    """Raised when order input is malformed or incomplete."""

    code = "VALIDATION_ERROR"
    http_status = 400
    default_message = "Invalid order request"


class OrderNotFoundError(OrderServiceError):
    code = "ORDER_NOT_FOUND"
    http_status = 404
    default_message = "Order not found"


class UnauthorizedError(OrderServiceError):
    """Raised when the caller is neither the owner nor an admin (or the rule is owner-only)."""

    code = "NOT_AUTHORIZED"
    http_status = 403
    default_message = "Not authorized to access this order"


class StateConflictError(OrderServiceError):
    """Raised when the order's current status does not allow the transition."""

    code = "INVALID_STATE"
    http_status = 400
    default_message = "Order status does not allow this operation"
