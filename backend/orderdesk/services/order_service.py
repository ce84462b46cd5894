"""Order placement, retrieval and fulfillment status changes."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from orderdesk.core.auth import Identity
from orderdesk.core.errors import (
    CouponNotFound,
    InvalidDiscountInput,
    InvalidOrderData,
    InvalidStatus,
    InvalidStatusTransition,
    OrderAccessDenied,
    OrderNotFound,
)
from orderdesk.models.coupon import Coupon
from orderdesk.models.order import ORDER_STATUS_TRANSITIONS, Order, OrderStatus
from orderdesk.repositories.order_repository import OrderRepository
from orderdesk.schemas.order import AppliedCouponSnapshot
from orderdesk.services.coupon_ledger import CouponUsageLedger
from orderdesk.services.coupon_registry import CouponRegistry
from orderdesk.services.discount_engine import compute_discount, round_money, to_decimal

logger = logging.getLogger(__name__)


class OrderFinalizer:
    """Turns a basket into a persisted order and manages its status."""

    def __init__(self, db: Session):
        self.db = db
        self.order_repo = OrderRepository(db)
        self.registry = CouponRegistry(db)
        self.ledger = CouponUsageLedger(db)

    def place_order(
        self,
        user_identity: str,
        items: list[dict[str, Any]] | None,
        total_amount: Any,
        coupon_code: str | None = None,
        now: datetime | None = None,
    ) -> Order:
        """Persist a pending order, applying ``coupon_code`` when it is usable.

        Coupon problems never fail the order: an unknown, inactive or expired
        coupon, or one whose last use was taken concurrently, simply yields
        no discount. The usage cap is not pre-checked here, only enforced by
        the conditional increment.

        The usage increment and the order insert commit together, so a failed
        insert never consumes a coupon use.

        Raises:
            InvalidOrderData: Empty items, or a missing, negative or sub-cent total.
        """
        if not items or not isinstance(items, list) or total_amount is None:
            raise InvalidOrderData()
        try:
            total = to_decimal(total_amount)
        except InvalidDiscountInput:
            raise InvalidOrderData() from None
        if total < 0 or round_money(total) != total:
            raise InvalidOrderData()

        coupon = self._find_usable_coupon(coupon_code, now) if coupon_code else None

        final_total = round_money(total)
        applied_coupon: dict[str, Any] | None = None
        try:
            if coupon is not None:
                result = compute_discount(coupon, total)
                if self.ledger.increment_usage(coupon.id, commit=False):  # type: ignore[arg-type]
                    final_total = result.new_total
                    applied_coupon = AppliedCouponSnapshot(
                        code=str(coupon.code),
                        discount_type=str(coupon.discount_type),
                        discount_value=Decimal(str(coupon.discount_value)),
                        discount_amount=result.discount_amount,
                    ).model_dump(mode="json")

            order = self.order_repo.create(
                user_identity=user_identity,
                items=items,
                total_amount=total,
                final_total=final_total,
                applied_coupon=applied_coupon,
                commit=False,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(order)
        logger.info(
            "Order %s placed by %s: total=%s final=%s coupon=%s",
            order.id,
            user_identity,
            order.total_amount,
            order.final_total,
            applied_coupon["code"] if applied_coupon else None,
        )
        return order

    def _find_usable_coupon(self, coupon_code: str, now: datetime | None) -> Coupon | None:
        try:
            coupon = self.registry.find_by_code(coupon_code)
        except CouponNotFound:
            logger.info("Ignoring unknown coupon %r on order", coupon_code)
            return None

        if not coupon.active or self.ledger.is_expired(coupon, now):
            logger.info("Ignoring unusable coupon %s on order", coupon.code)
            return None
        return coupon

    def list_orders(self, user_identity: str, order_by: str | None = None) -> list[Order]:
        """Orders placed by ``user_identity``, newest first by default."""
        return self.order_repo.get_by_user(user_identity, order_by=order_by)

    def get_order(self, order_id: UUID, requester_identity: str, is_admin: bool = False) -> Order:
        """Fetch an order visible to the requester.

        Raises:
            OrderNotFound: No order with that id.
            OrderAccessDenied: The requester neither owns the order nor is an admin.
        """
        order = self.order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFound()
        if not is_admin and order.user_identity != requester_identity:
            raise OrderAccessDenied()
        return order

    def update_status(self, order_id: UUID, new_status: OrderStatus | str, identity: Identity) -> Order:
        """Move an order along its fulfillment lifecycle. Admins only.

        Raises:
            OrderAccessDenied: ``identity`` is not an admin.
            InvalidStatus: ``new_status`` is not a known status.
            OrderNotFound: No order with that id.
            InvalidStatusTransition: The move is not allowed from the current status.
        """
        if not identity.is_admin:
            raise OrderAccessDenied("Admin only")

        try:
            status = OrderStatus(new_status)
        except ValueError:
            raise InvalidStatus() from None

        order = self.order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFound()

        current = OrderStatus(order.status)
        if status not in ORDER_STATUS_TRANSITIONS[current]:
            raise InvalidStatusTransition(current.value, status.value)

        if not self.order_repo.transition_status(order_id, current, status):
            # Another update moved the order first; the commit reloads its status
            raise InvalidStatusTransition(str(order.status), status.value)

        self.db.refresh(order)
        logger.info("Order %s status %s -> %s by %s", order.id, current.value, status.value, identity.email)
        return order
