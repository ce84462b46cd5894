"""Idempotency key storage, one row per (user identity, key)."""

from datetime import timedelta
from typing import Any

from sqlalchemy.orm import Session

from orderdesk.models.idempotency_record import IdempotencyRecord
from orderdesk.models.shared import utc_now


class IdempotencyRepository:
    def __init__(self, db: Session):
        self.db = db

    def find(self, user_identity: str, key: str) -> IdempotencyRecord | None:
        return (
            self.db.query(IdempotencyRecord)
            .filter_by(user_identity=user_identity, idempotency_key=key)
            .one_or_none()
        )

    def reserve(self, user_identity: str, key: str, method: str, path: str) -> IdempotencyRecord:
        """Claim ``key`` for a request that has not produced a response yet."""
        record = IdempotencyRecord(
            user_identity=user_identity,
            idempotency_key=key,
            request_method=method,
            request_path=path,
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def store_response(self, record: IdempotencyRecord, status: int, body: dict[str, Any]) -> IdempotencyRecord:
        record.response_status = status  # type: ignore[assignment]
        record.response_body = body  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(record)
        return record

    def release(self, user_identity: str, key: str) -> None:
        """Drop a reservation that never got a response, so the key can be retried."""
        self.db.query(IdempotencyRecord).filter(
            IdempotencyRecord.user_identity == user_identity,
            IdempotencyRecord.idempotency_key == key,
            IdempotencyRecord.response_status.is_(None),
        ).delete(synchronize_session=False)
        self.db.commit()

    def purge_older_than(self, hours: int) -> int:
        """Delete records created more than ``hours`` ago and return how many went."""
        cutoff = utc_now() - timedelta(hours=hours)
        deleted = (
            self.db.query(IdempotencyRecord)
            .filter(IdempotencyRecord.created_at < cutoff)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return int(deleted)
