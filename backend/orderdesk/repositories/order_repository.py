"""Order repository for data access."""

from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from orderdesk.core.sorting import apply_order_by
from orderdesk.models.order import Order, OrderStatus
from orderdesk.models.shared import utc_now


class OrderRepository:
    """Repository for Order model."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, order_id: UUID) -> Order | None:
        """Get an order by ID."""
        return self.db.query(Order).filter(Order.id == order_id).first()

    def get_by_user(self, user_identity: str, order_by: str | None = None) -> list[Order]:
        """Get all orders placed by one identity."""
        query = self.db.query(Order).filter(Order.user_identity == user_identity)
        return apply_order_by(query, Order, order_by).all()

    def create(
        self,
        *,
        user_identity: str,
        items: list[dict[str, Any]],
        total_amount: Decimal,
        final_total: Decimal,
        applied_coupon: dict[str, Any] | None,
        commit: bool = True,
    ) -> Order:
        """Create a pending order.

        With ``commit=False`` the row is only flushed, leaving the caller's
        transaction open.
        """
        now = utc_now()
        order = Order(
            user_identity=user_identity,
            items=items,
            total_amount=total_amount,
            final_total=final_total,
            applied_coupon=applied_coupon,
            status=OrderStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        self.db.add(order)
        if commit:
            self.db.commit()
            self.db.refresh(order)
        else:
            self.db.flush()
        return order

    def transition_status(self, order_id: UUID, current: OrderStatus, new: OrderStatus) -> bool:
        """Set ``new`` only if the order still has status ``current``.

        A single conditional UPDATE, so of two racing transitions from the
        same status only one lands. Returns False when no row matched.
        """
        stmt = (
            update(Order)
            .where(Order.id == order_id, Order.status == current.value)
            .values(status=new.value, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        self.db.commit()
        return bool(result.rowcount == 1)
