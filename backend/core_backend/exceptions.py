"""
Domain errors raised by the POS engine services.

Every error carries a human-readable message, a short machine code and
optional details so the API layer can render a specific message without
re-deriving anything. core_backend.exception_handler maps them to HTTP
responses.
"""

from rest_framework import status


class POSError(Exception):
    """Base exception for POS engine errors."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "pos_error"
    default_message = "The operation could not be completed"

    def __init__(self, message=None, code=None, details=None):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)


class POSValidationError(POSError):
    """Raised for malformed input, before any write happens."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "validation_error"
    default_message = "Invalid input"


class NotFoundError(POSError):
    """Raised when a record is absent or belongs to another tenant."""

    status_code = status.HTTP_404_NOT_FOUND
    default_code = "not_found"

    def __init__(self, resource, identifier=None, message=None):
        self.resource = resource
        self.identifier = identifier
        if message is None:
            message = f"{resource} not found"
        details = {"resource": resource}
        if identifier is not None:
            details["id"] = str(identifier)
        super().__init__(message, details=details)


class ConflictError(POSError):
    """Raised when an operation is illegal for the record's current state."""

    status_code = status.HTTP_409_CONFLICT
    default_code = "conflict"
    default_message = "Operation not allowed in the current state"


class NoBillableItemsError(ConflictError):
    default_code = "no_billable_items"
    default_message = "Order has no billable items"


class InsufficientResourceError(POSError):
    """Raised when a counted resource is below the required quantity."""

    status_code = status.HTTP_409_CONFLICT
    default_code = "insufficient_resource"
    default_message = "Insufficient resource"


class InsufficientStockError(InsufficientResourceError):
    """Raised when a stock row cannot cover the quantity a movement needs."""

    default_code = "insufficient_stock"

    def __init__(self, product, available, required, message=None):
        self.product = product
        self.available = available
        self.required = required
        if message is None:
            message = (
                f"Insufficient stock for product {product.name}. "
                f"Available: {available}, Required: {required}"
            )
        super().__init__(
            message,
            details={
                "product_id": str(product.pk),
                "available": available,
                "required": required,
            },
        )


class PermissionDeniedError(POSError):
    """Raised when the actor's role does not allow the mutation."""

    status_code = status.HTTP_403_FORBIDDEN
    default_code = "forbidden"
    default_message = "You do not have permission to perform this action"

