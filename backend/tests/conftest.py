"""Shared test fixtures for all test modules."""

import contextlib
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import orderdesk.models  # noqa: F401
from orderdesk.core import database as db_module
from orderdesk.core.auth import TokenVerifier
from orderdesk.core.config import settings
from orderdesk.core.database import Base, get_db, make_engine
from orderdesk.main import app
from orderdesk.repositories.coupon_repository import CouponRepository
from orderdesk.routers.coupons import apply_rate_limiter

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = make_engine("sqlite://", poolclass=StaticPool)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

USER_EMAIL = "shopper@example.com"
OTHER_EMAIL = "someone-else@example.com"
ADMIN_EMAIL = "admin@example.com"


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and delete all rows after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    yield

    with _test_engine.connect() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.commit()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Keep coupon-apply attempts from leaking between tests."""
    apply_rate_limiter.reset()
    yield
    apply_rate_limiter.reset()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db_session():
    """Create a database session for direct repository and service testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


@pytest.fixture
def verifier():
    return TokenVerifier(settings.JWT_SECRET, settings.JWT_ALGORITHM)


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers(verifier):
    return bearer(verifier.issue(USER_EMAIL))


@pytest.fixture
def other_user_headers(verifier):
    return bearer(verifier.issue(OTHER_EMAIL))


@pytest.fixture
def admin_headers(verifier):
    return bearer(verifier.issue(ADMIN_EMAIL, admin=True))


@pytest.fixture
def future():
    return datetime.now(UTC) + timedelta(days=30)


@pytest.fixture
def past():
    return datetime.now(UTC) - timedelta(days=1)


@pytest.fixture
def make_coupon(db_session, future):
    """Factory that inserts a coupon directly through the repository."""
    repo = CouponRepository(db_session)

    def _make(
        code: str = "SAVE10",
        discount_type: str = "percentage",
        discount_value: str = "10",
        expiry_date: datetime | None = None,
        active: bool = True,
        usage_limit: int | None = None,
        used_count: int = 0,
    ):
        coupon = repo.create(
            code=code,
            discount_type=discount_type,
            discount_value=Decimal(discount_value),
            expiry_date=expiry_date or future,
            active=active,
            usage_limit=usage_limit,
        )
        if used_count:
            coupon.used_count = used_count
            db_session.commit()
            db_session.refresh(coupon)
        return coupon

    return _make
