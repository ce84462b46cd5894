"""Order schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import ConfigDict, Field

from orderdesk.models.order import OrderStatus
from orderdesk.schemas.base import CamelModel


class OrderCreate(CamelModel):
    items: list[dict[str, Any]] = Field(min_length=1)
    total_amount: Decimal = Field(ge=0, decimal_places=2)
    coupon_code: str | None = Field(default=None, max_length=255)


class AppliedCouponSnapshot(CamelModel):
    """Coupon terms frozen onto an order when it was placed."""

    code: str
    discount_type: str
    discount_value: Decimal
    discount_amount: Decimal


class OrderResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_identity: str
    items: list[dict[str, Any]]
    total_amount: Decimal
    final_total: Decimal
    applied_coupon: AppliedCouponSnapshot | None = None
    status: OrderStatus
    created_at: datetime
    updated_at: datetime


class OrderCreatedResponse(CamelModel):
    message: str = "Order placed successfully"
    order_id: UUID


class OrderListResponse(CamelModel):
    orders: list[OrderResponse]


class OrderDetailResponse(CamelModel):
    order: OrderResponse


class OrderStatusUpdate(CamelModel):
    status: OrderStatus


class OrderStatusUpdateResponse(CamelModel):
    message: str = "Order status updated successfully"
    order: OrderResponse
