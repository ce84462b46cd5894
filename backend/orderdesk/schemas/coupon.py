"""Coupon schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import ConfigDict, Field, field_validator

from orderdesk.models.coupon import DiscountType
from orderdesk.schemas.base import CamelModel


def normalize_code(code: str) -> str:
    """Canonical form of a coupon code: trimmed and uppercased."""
    return (code or "").strip().upper()


class CouponCreate(CamelModel):
    code: str = Field(max_length=255)
    discount_type: DiscountType
    discount_value: Decimal
    expiry_date: datetime
    active: bool = True
    usage_limit: int | None = None

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, value: str) -> str:
        normalized = normalize_code(value)
        if not normalized:
            raise ValueError("code must not be blank")
        return normalized

    @field_validator("usage_limit")
    @classmethod
    def _zero_limit_is_unlimited(cls, value: int | None) -> int | None:
        if value is None or value == 0:
            return None
        if value < 0:
            raise ValueError("usageLimit must be a positive integer")
        return value


class CouponResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    discount_type: str
    discount_value: Decimal
    expiry_date: datetime
    active: bool
    usage_limit: int | None = None
    used_count: int
    created_at: datetime


class CouponCreatedResponse(CamelModel):
    message: str = "Coupon created"
    coupon_id: UUID


class CouponListResponse(CamelModel):
    coupons: list[CouponResponse]


class ApplyCouponRequest(CamelModel):
    code: str = Field(min_length=1, max_length=255)
    basket_total: Decimal


class ApplyCouponResponse(CamelModel):
    success: bool = True
    code: str
    discount_type: str
    discount_value: Decimal
    discount_amount: Decimal
    new_total: Decimal
    message: str = "Coupon applied successfully"
