"""Strict coupon application: the standalone apply endpoint's rules."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from orderdesk.core.errors import UsageLimitReached
from orderdesk.services.coupon_ledger import CouponUsageLedger
from orderdesk.services.coupon_registry import CouponRegistry
from orderdesk.services.discount_engine import compute_discount


@dataclass
class AppliedDiscount:
    """Result of a successful coupon application."""

    code: str
    discount_type: str
    discount_value: Decimal
    discount_amount: Decimal
    new_total: Decimal


class CouponApplicationService:
    """Applies a coupon to a basket total, failing loudly on any rule violation.

    Unlike order placement, every problem here is reported to the caller, and
    each successful application consumes one use of the coupon.
    """

    def __init__(self, db: Session):
        self.db = db
        self.registry = CouponRegistry(db)
        self.ledger = CouponUsageLedger(db)

    def apply(self, code: str, basket_total: Any, now: datetime | None = None) -> AppliedDiscount:
        """Validate a coupon, compute its discount and record the use.

        Raises:
            CouponNotFound: Unknown code.
            CouponInactive, CouponExpired, UsageLimitReached: Coupon not usable.
            InvalidDiscountInput: ``basket_total`` is not a finite number >= 0.
        """
        coupon = self.registry.find_by_code(code)
        self.ledger.validate(coupon, now)

        result = compute_discount(coupon, basket_total)

        if not self.ledger.increment_usage(coupon.id):  # type: ignore[arg-type]
            raise UsageLimitReached()

        return AppliedDiscount(
            code=str(coupon.code),
            discount_type=str(coupon.discount_type),
            discount_value=Decimal(str(coupon.discount_value)),
            discount_amount=result.discount_amount,
            new_total=result.new_total,
        )
