"""Tests for coupon usability rules and the atomic usage counter."""

import threading
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.orm import sessionmaker

from orderdesk.core.database import Base, make_engine
from orderdesk.core.errors import CouponExpired, CouponInactive, UsageLimitReached
from orderdesk.models.coupon import Coupon
from orderdesk.repositories.coupon_repository import CouponRepository
from orderdesk.services.coupon_ledger import CouponUsageLedger


@pytest.fixture
def ledger(db_session):
    return CouponUsageLedger(db_session)


class TestValidate:
    def test_usable_coupon_passes(self, make_coupon):
        CouponUsageLedger.validate(make_coupon(usage_limit=5, used_count=4))

    def test_inactive(self, make_coupon):
        with pytest.raises(CouponInactive, match="Coupon is not active"):
            CouponUsageLedger.validate(make_coupon(active=False))

    def test_expired(self, make_coupon, past):
        with pytest.raises(CouponExpired, match="Coupon has expired"):
            CouponUsageLedger.validate(make_coupon(expiry_date=past))

    def test_expiry_is_strictly_before_now(self, make_coupon):
        expiry = datetime(2030, 1, 1, 12, 0, tzinfo=UTC)
        coupon = make_coupon(expiry_date=expiry)
        CouponUsageLedger.validate(coupon, now=expiry)
        with pytest.raises(CouponExpired):
            CouponUsageLedger.validate(coupon, now=expiry + timedelta(microseconds=1))

    def test_naive_now_is_treated_as_utc(self, make_coupon):
        coupon = make_coupon(expiry_date=datetime(2030, 1, 1, tzinfo=UTC))
        with pytest.raises(CouponExpired):
            CouponUsageLedger.validate(coupon, now=datetime(2030, 1, 2))

    def test_limit_reached(self, make_coupon):
        with pytest.raises(UsageLimitReached, match="Coupon usage limit reached"):
            CouponUsageLedger.validate(make_coupon(usage_limit=2, used_count=2))

    def test_unlimited_coupon_never_hits_limit(self, make_coupon):
        CouponUsageLedger.validate(make_coupon(usage_limit=None, used_count=10_000))

    def test_inactive_reported_before_expired(self, make_coupon, past):
        coupon = make_coupon(active=False, expiry_date=past, usage_limit=1, used_count=1)
        with pytest.raises(CouponInactive):
            CouponUsageLedger.validate(coupon)

    def test_expired_reported_before_limit(self, make_coupon, past):
        coupon = make_coupon(expiry_date=past, usage_limit=1, used_count=1)
        with pytest.raises(CouponExpired):
            CouponUsageLedger.validate(coupon)


class TestIncrementUsage:
    def test_increments_by_one(self, ledger, make_coupon, db_session):
        coupon = make_coupon(usage_limit=3)
        assert ledger.increment_usage(coupon.id) is True
        db_session.refresh(coupon)
        assert coupon.used_count == 1

    def test_refused_at_limit(self, ledger, make_coupon, db_session):
        coupon = make_coupon(usage_limit=1)
        assert ledger.increment_usage(coupon.id) is True
        assert ledger.increment_usage(coupon.id) is False
        db_session.refresh(coupon)
        assert coupon.used_count == 1

    def test_unlimited_keeps_counting(self, ledger, make_coupon, db_session):
        coupon = make_coupon(usage_limit=None)
        for _ in range(5):
            assert ledger.increment_usage(coupon.id) is True
        db_session.refresh(coupon)
        assert coupon.used_count == 5

    def test_stale_copies_cannot_overshoot(self, make_coupon, db_session):
        """Two sessions that both read used_count=0 still only get one use."""
        coupon = make_coupon(usage_limit=1)
        from orderdesk.core import database as db_module

        other = db_module.SessionLocal()
        try:
            stale = other.query(Coupon).filter(Coupon.id == coupon.id).one()
            assert stale.used_count == 0

            assert CouponUsageLedger(db_session).increment_usage(coupon.id) is True
            assert CouponUsageLedger(other).increment_usage(stale.id) is False
        finally:
            other.close()

        db_session.refresh(coupon)
        assert coupon.used_count == 1

    def test_uncommitted_increment_rolls_back(self, ledger, make_coupon, db_session):
        coupon = make_coupon(usage_limit=1)
        assert ledger.increment_usage(coupon.id, commit=False) is True
        db_session.rollback()
        db_session.refresh(coupon)
        assert coupon.used_count == 0

    def test_unknown_coupon_is_refused(self, ledger):
        import uuid

        assert ledger.increment_usage(uuid.uuid4()) is False


def test_concurrent_increments_never_exceed_limit(tmp_path, future):
    """Many threads racing on one coupon consume exactly usage_limit uses."""
    engine = make_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    with Session() as setup:
        coupon = CouponRepository(setup).create(
            code="RACE",
            discount_type="fixed",
            discount_value=Decimal("5"),
            expiry_date=future,
            usage_limit=3,
        )
        coupon_id = coupon.id

    results: list[bool] = []
    lock = threading.Lock()

    def worker() -> None:
        with Session() as session:
            ok = CouponUsageLedger(session).increment_usage(coupon_id)
        with lock:
            results.append(ok)

    threads = [threading.Thread(target=worker) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    with Session() as check:
        stored = check.query(Coupon).filter(Coupon.id == coupon_id).one()
        assert stored.used_count == 3

    assert results.count(True) == 3
    assert results.count(False) == 7
    engine.dispose()
