"""Usability rules and usage metering for coupons."""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from orderdesk.core.errors import CouponExpired, CouponInactive, UsageLimitReached
from orderdesk.models.coupon import Coupon
from orderdesk.models.shared import as_utc, utc_now
from orderdesk.repositories.coupon_repository import CouponRepository

logger = logging.getLogger(__name__)


class CouponUsageLedger:
    """Decides whether a coupon may be used and records each use."""

    def __init__(self, db: Session):
        self.db = db
        self.coupon_repo = CouponRepository(db)

    @staticmethod
    def validate(coupon: Coupon, now: datetime | None = None) -> None:
        """Check a coupon against its active flag, expiry and usage cap.

        Checks run in that order and the first failure is raised.

        Raises:
            CouponInactive: The coupon is switched off.
            CouponExpired: ``expiry_date`` is strictly before ``now``.
            UsageLimitReached: ``used_count`` has reached ``usage_limit``.
        """
        now = as_utc(now or utc_now())

        if not coupon.active:
            raise CouponInactive()

        if coupon.expiry_date is not None and as_utc(coupon.expiry_date) < now:
            raise CouponExpired()

        if coupon.usage_limit is not None and (coupon.used_count or 0) >= coupon.usage_limit:
            raise UsageLimitReached()

    @staticmethod
    def is_expired(coupon: Coupon, now: datetime | None = None) -> bool:
        if coupon.expiry_date is None:
            return False
        return as_utc(coupon.expiry_date) < as_utc(now or utc_now())

    def increment_usage(self, coupon_id: UUID, *, commit: bool = True) -> bool:
        """Record one use of a coupon.

        Returns False, without changing anything, when the coupon's usage cap
        has already been reached by the time the update runs.
        """
        incremented = self.coupon_repo.increment_used_count(coupon_id, commit=commit)
        if not incremented:
            logger.warning("Usage increment refused for coupon %s: limit reached", coupon_id)
        return incremented
