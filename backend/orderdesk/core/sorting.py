"""``?order_by=field:direction`` support for list queries."""

from __future__ import annotations

from sqlalchemy import asc, desc
from sqlalchemy.orm import Query

from orderdesk.core.database import Base

_DIRECTIONS = {"asc": asc, "desc": desc}


def parse_order_by(
    order_by: str | None,
    model: type[Base],
    default: tuple[str, str] = ("created_at", "desc"),
) -> tuple[str, str]:
    """Resolve an ``order_by`` string to a (column, direction) pair.

    Only real table columns are accepted; anything else yields ``default``.
    A column given without a direction sorts ascending.
    """
    if not order_by:
        return default
    field, _, direction = order_by.strip().partition(":")
    if field not in model.__table__.columns:
        return default
    direction = direction.lower()
    return field, direction if direction in _DIRECTIONS else "asc"


def apply_order_by(
    query: Query,  # type: ignore[type-arg]
    model: type[Base],
    order_by: str | None,
) -> Query:  # type: ignore[type-arg]
    field, direction = parse_order_by(order_by, model)
    return query.order_by(_DIRECTIONS[direction](model.__table__.columns[field]))
