"""Order model with its frozen coupon snapshot."""

from enum import Enum

from sqlalchemy import JSON, Column, DateTime, Numeric, String

from orderdesk.core.database import Base
from orderdesk.models.shared import UUIDType, generate_uuid, utc_now


class OrderStatus(str, Enum):
    PENDING = "pending"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Allowed fulfillment moves. Delivered and cancelled are terminal.
ORDER_STATUS_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


class Order(Base):
    """A placed order.

    ``applied_coupon`` is a copy of the coupon terms at placement time, not a
    reference, so later coupon edits never change historical orders.
    """

    __tablename__ = "orders"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_identity = Column(String(255), nullable=False, index=True)

    items = Column(JSON, nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    final_total = Column(Numeric(12, 2), nullable=False)
    applied_coupon = Column(JSON, nullable=True)

    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
