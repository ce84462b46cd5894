"""Domain errors raised by the coupon and order services.

Every error is a ``ValueError`` carrying the HTTP status it maps to, so
routers can translate it with ``HTTPException(status_code=exc.status_code)``.
"""


class OrderDeskError(ValueError):
    """Base class for client-facing domain errors."""

    status_code: int = 400


# Coupons


class CouponNotFound(OrderDeskError):
    status_code = 404

    def __init__(self, message: str = "Coupon not found"):
        super().__init__(message)


class DuplicateCouponCode(OrderDeskError):
    def __init__(self, message: str = "Coupon code already exists"):
        super().__init__(message)


class CouponRuleViolation(OrderDeskError):
    """A coupon exists but may not be used right now."""


class CouponInactive(CouponRuleViolation):
    def __init__(self, message: str = "Coupon is not active"):
        super().__init__(message)


class CouponExpired(CouponRuleViolation):
    def __init__(self, message: str = "Coupon has expired"):
        super().__init__(message)


class UsageLimitReached(CouponRuleViolation):
    def __init__(self, message: str = "Coupon usage limit reached"):
        super().__init__(message)


class InvalidDiscountInput(OrderDeskError):
    def __init__(self, message: str = "Invalid basketTotal"):
        super().__init__(message)


# Orders


class InvalidOrderData(OrderDeskError):
    def __init__(self, message: str = "Invalid order data"):
        super().__init__(message)


class OrderNotFound(OrderDeskError):
    status_code = 404

    def __init__(self, message: str = "Order not found"):
        super().__init__(message)


class OrderAccessDenied(OrderDeskError):
    status_code = 403

    def __init__(self, message: str = "Not authorized to view this order"):
        super().__init__(message)


class InvalidStatus(OrderDeskError):
    def __init__(self, message: str = "Invalid status"):
        super().__init__(message)


class InvalidStatusTransition(OrderDeskError):
    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot change order status from '{current}' to '{requested}'")
        self.current = current
        self.requested = requested


# Requests


class IdempotencyKeyInProgress(OrderDeskError):
    status_code = 409

    def __init__(self, message: str = "A request with this Idempotency-Key is already in progress"):
        super().__init__(message)
