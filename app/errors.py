"""Service-level error taxonomy.

Every error raised by the order and payment services derives from
``ServiceError`` and carries the HTTP status it should be surfaced as. The
FastAPI exception handler in ``app.main`` does the translation, so services
never import anything from the web layer.
"""

from typing import Any, Optional


class ServiceError(Exception):
    """Base class for errors surfaced to API callers"""

    status_code: int = 500
    default_message: str = "Internal error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(ServiceError):
    """A referenced order, restaurant, item, address, user or payment is missing"""

    status_code = 404

    def __init__(self, resource: str, field: str, value: Any):
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} not found with {field}: {value}")


class ValidationError(ServiceError):
    status_code = 400
    default_message = "Invalid request"


class ClosedRestaurantError(ServiceError):
    status_code = 400
    default_message = "Restaurant is currently closed"


class UnavailableItemError(ServiceError):
    status_code = 400

    def __init__(self, item_name: str):
        self.item_name = item_name
        super().__init__(f"Item is not available: {item_name}")


class CrossRestaurantError(ServiceError):
    status_code = 400
    default_message = "Item does not belong to selected restaurant"


class RoleMismatchError(ServiceError):
    status_code = 400
    default_message = "User is not a delivery partner"


class PermissionDeniedError(ServiceError):
    status_code = 403
    default_message = "Not allowed to access this order"


class InvalidTransitionError(ServiceError):
    status_code = 409

    def __init__(self, current: Any, requested: Any):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Invalid status transition from {_label(current)} to {_label(requested)}"
        )


class NonCancellableError(ServiceError):
    status_code = 409
    default_message = "Order cannot be cancelled at this stage"


class ConcurrentUpdateError(ServiceError):
    status_code = 409
    default_message = "Order was modified concurrently, reload and retry"


class AlreadyPaidError(ServiceError):
    status_code = 409
    default_message = "Payment already completed for this order"


class PaymentVerificationError(ServiceError):
    status_code = 402
    default_message = "Payment verification failed"


class InvalidWebhookSignatureError(ServiceError):
    status_code = 403
    default_message = "Invalid webhook signature"


class GatewayError(ServiceError):
    """The payment gateway could not be reached or rejected the request.

    Safe for the caller to retry; nothing was persisted locally.
    """

    status_code = 503
    default_message = "Payment gateway unavailable"

    def __init__(self, message: Optional[str] = None, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


def _label(status: Any) -> str:
    return getattr(status, "value", str(status))
