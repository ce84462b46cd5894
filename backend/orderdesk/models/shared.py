"""Column types and time helpers shared by the models."""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import String, TypeDecorator
from sqlalchemy.engine import Dialect


class UUIDType(TypeDecorator[uuid.UUID]):
    """UUID stored as its 36-character string form on every backend."""

    impl = String(36)
    cache_ok = True

    @staticmethod
    def _coerce(value: Any) -> uuid.UUID | None:
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))

    def process_bind_param(self, value: Any, dialect: Dialect) -> str | None:
        coerced = self._coerce(value)
        return None if coerced is None else str(coerced)

    def process_result_value(self, value: Any, dialect: Dialect) -> uuid.UUID | None:
        return self._coerce(value)


generate_uuid = uuid.uuid4


def utc_now() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as SQLite returns them) as UTC."""
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
