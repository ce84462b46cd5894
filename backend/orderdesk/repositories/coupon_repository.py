"""Coupon repository for data access."""

from uuid import UUID

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from orderdesk.models.coupon import Coupon
from orderdesk.models.shared import utc_now


class CouponRepository:
    """Repository for Coupon model."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        active_only: bool = False,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[Coupon]:
        """Get coupons, newest first."""
        query = self.db.query(Coupon)

        if active_only:
            query = query.filter(Coupon.active.is_(True))

        query = query.order_by(Coupon.created_at.desc()).offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def get_by_id(self, coupon_id: UUID) -> Coupon | None:
        """Get a coupon by ID."""
        return self.db.query(Coupon).filter(Coupon.id == coupon_id).first()

    def get_by_code(self, code: str) -> Coupon | None:
        """Get a coupon by its already-normalized code."""
        return self.db.query(Coupon).filter(Coupon.code == code).first()

    def code_exists(self, code: str) -> bool:
        return self.db.query(Coupon.id).filter(Coupon.code == code).first() is not None

    def create(
        self,
        *,
        code: str,
        discount_type: str,
        discount_value: object,
        expiry_date: object,
        active: bool = True,
        usage_limit: int | None = None,
    ) -> Coupon:
        """Create a new coupon with a zero usage counter."""
        coupon = Coupon(
            code=code,
            discount_type=discount_type,
            discount_value=discount_value,
            expiry_date=expiry_date,
            active=active,
            usage_limit=usage_limit,
            used_count=0,
            created_at=utc_now(),
        )
        self.db.add(coupon)
        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def increment_used_count(self, coupon_id: UUID, *, commit: bool = True) -> bool:
        """Add one use to a coupon if it is still under its limit.

        Runs as a single conditional UPDATE so that concurrent callers can
        never push ``used_count`` past ``usage_limit``. Returns False when no
        row matched (unknown id or limit already reached).
        """
        stmt = (
            update(Coupon)
            .where(
                Coupon.id == coupon_id,
                or_(Coupon.usage_limit.is_(None), Coupon.used_count < Coupon.usage_limit),
            )
            .values(used_count=Coupon.used_count + 1)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if commit:
            self.db.commit()
        return bool(result.rowcount == 1)
