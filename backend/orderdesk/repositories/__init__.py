from orderdesk.repositories.coupon_repository import CouponRepository
from orderdesk.repositories.idempotency_repository import IdempotencyRepository
from orderdesk.repositories.order_repository import OrderRepository

__all__ = [
    "CouponRepository",
    "IdempotencyRepository",
    "OrderRepository",
]
