from orderdesk.models.coupon import Coupon, DiscountType
from orderdesk.models.idempotency_record import IdempotencyRecord
from orderdesk.models.order import ORDER_STATUS_TRANSITIONS, Order, OrderStatus

__all__ = [
    "Coupon",
    "DiscountType",
    "IdempotencyRecord",
    "ORDER_STATUS_TRANSITIONS",
    "Order",
    "OrderStatus",
]
