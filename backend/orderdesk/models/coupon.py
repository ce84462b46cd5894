"""Coupon model for promotional discounts."""

from enum import Enum

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, Numeric, String

from orderdesk.core.database import Base
from orderdesk.models.shared import UUIDType, generate_uuid, utc_now


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Coupon(Base):
    """A named discount rule with an active flag, an expiry and an optional usage cap."""

    __tablename__ = "coupons"
    __table_args__ = (
        CheckConstraint("used_count >= 0", name="ck_coupons_used_count_non_negative"),
        CheckConstraint(
            "usage_limit IS NULL OR used_count <= usage_limit",
            name="ck_coupons_used_count_within_limit",
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    code = Column(String(255), unique=True, index=True, nullable=False)

    discount_type = Column(String(20), nullable=False)
    discount_value = Column(Numeric(12, 4), nullable=False)

    expiry_date = Column(DateTime(timezone=True), nullable=False)
    active = Column(Boolean, nullable=False, default=True)

    usage_limit = Column(Integer, nullable=True)
    used_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
