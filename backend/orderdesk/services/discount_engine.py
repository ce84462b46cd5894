"""Discount computation for a single coupon against a basket total.

Pure functions only: nothing here reads or writes the database. Totals are
rounded to cents with ROUND_HALF_UP (half away from zero for the
non-negative amounts handled here).
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Protocol

from orderdesk.core.errors import InvalidDiscountInput
from orderdesk.models.coupon import DiscountType

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


class DiscountTerms(Protocol):
    discount_type: Any
    discount_value: Any


@dataclass(frozen=True)
class DiscountResult:
    """Outcome of applying one coupon to a basket."""

    discount_amount: Decimal
    new_total: Decimal


def to_decimal(value: Any) -> Decimal:
    """Convert a number-like value to Decimal, raising InvalidDiscountInput."""
    if isinstance(value, bool) or value is None:
        raise InvalidDiscountInput()
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidDiscountInput() from None
    if not result.is_finite():
        raise InvalidDiscountInput()
    return result


def round_money(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_discount(coupon: DiscountTerms | None, basket_total: Any) -> DiscountResult:
    """Compute the discount a coupon grants on ``basket_total``.

    Percentage coupons take ``discount_value`` percent of the basket, fixed
    coupons take ``discount_value`` itself, and any other type grants
    nothing. The discount is clamped to ``[0, basket_total]``.

    Raises:
        InvalidDiscountInput: If the coupon is missing or has no type, or the
            basket total is not a finite, non-negative number.
    """
    if coupon is None or not coupon.discount_type:
        raise InvalidDiscountInput("Coupon has no discount type")

    total = to_decimal(basket_total)
    if total < ZERO:
        raise InvalidDiscountInput()

    discount_type = str(getattr(coupon.discount_type, "value", coupon.discount_type))
    if discount_type == DiscountType.PERCENTAGE.value:
        discount = total * to_decimal(coupon.discount_value) / HUNDRED
    elif discount_type == DiscountType.FIXED.value:
        discount = to_decimal(coupon.discount_value)
    else:
        discount = ZERO

    discount = min(max(discount, ZERO), total)
    return DiscountResult(discount_amount=discount, new_total=round_money(total - discount))
