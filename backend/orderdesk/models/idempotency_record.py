"""Idempotency-Key reservations and the responses they produced."""

from sqlalchemy import JSON, Column, DateTime, Integer, String, UniqueConstraint

from orderdesk.core.database import Base
from orderdesk.models.shared import UUIDType, generate_uuid, utc_now


class IdempotencyRecord(Base):
    """One caller's key. ``response_status`` stays NULL until the request succeeds."""

    __tablename__ = "idempotency_records"
    __table_args__ = (
        UniqueConstraint("user_identity", "idempotency_key", name="uq_user_idempotency_key"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_identity = Column(String(255), nullable=False, index=True)
    idempotency_key = Column(String(255), nullable=False, index=True)
    request_method = Column(String(10), nullable=False)
    request_path = Column(String(500), nullable=False)
    response_status = Column(Integer, nullable=True)
    response_body = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
