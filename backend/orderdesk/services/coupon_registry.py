"""Coupon lifecycle: creation, lookup by code and listing."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from orderdesk.core.errors import CouponNotFound, DuplicateCouponCode
from orderdesk.models.coupon import Coupon
from orderdesk.repositories.coupon_repository import CouponRepository
from orderdesk.schemas.coupon import CouponCreate, normalize_code

logger = logging.getLogger(__name__)


class CouponRegistry:
    """Owns coupon records. Codes are always stored and looked up normalized."""

    def __init__(self, db: Session):
        self.db = db
        self.coupon_repo = CouponRepository(db)

    def create(self, data: CouponCreate) -> Coupon:
        """Create a coupon.

        Raises:
            DuplicateCouponCode: If a coupon with the same normalized code exists.
        """
        code = normalize_code(data.code)
        if self.coupon_repo.code_exists(code):
            raise DuplicateCouponCode()

        try:
            coupon = self.coupon_repo.create(
                code=code,
                discount_type=data.discount_type.value,
                discount_value=data.discount_value,
                expiry_date=data.expiry_date,
                active=data.active,
                usage_limit=data.usage_limit,
            )
        except IntegrityError:
            # Lost a race against a concurrent insert of the same code
            self.db.rollback()
            raise DuplicateCouponCode() from None

        logger.info("Created coupon %s (%s %s)", coupon.code, coupon.discount_type, coupon.discount_value)
        return coupon

    def find_by_code(self, code: str) -> Coupon:
        """Look up a coupon by code, ignoring case and surrounding whitespace.

        Raises:
            CouponNotFound: If no coupon has that code.
        """
        coupon = self.coupon_repo.get_by_code(normalize_code(code))
        if coupon is None:
            raise CouponNotFound()
        return coupon

    def list_coupons(self, active_only: bool = False, skip: int = 0, limit: int | None = None) -> list[Coupon]:
        """List coupons, newest first."""
        return self.coupon_repo.get_all(active_only=active_only, skip=skip, limit=limit)
