"""Order API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from orderdesk.core.auth import Identity, get_current_identity, require_admin
from orderdesk.core.database import get_db
from orderdesk.core.errors import OrderDeskError
from orderdesk.core.idempotency import (
    IdempotencyResult,
    check_idempotency,
    record_idempotency_response,
    release_idempotency_key,
)
from orderdesk.schemas.base import MessageResponse
from orderdesk.schemas.order import (
    OrderCreate,
    OrderCreatedResponse,
    OrderDetailResponse,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
    OrderStatusUpdateResponse,
)
from orderdesk.services.order_service import OrderFinalizer

router = APIRouter()


@router.post(
    "/",
    response_model=OrderCreatedResponse,
    status_code=201,
    summary="Place order",
    responses={
        400: {"model": MessageResponse, "description": "Invalid order data"},
        401: {"model": MessageResponse, "description": "Missing or invalid token"},
        409: {"model": MessageResponse, "description": "Same Idempotency-Key still in progress"},
    },
)
async def create_order(
    data: OrderCreate,
    request: Request,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> OrderCreatedResponse | JSONResponse:
    """Place an order from a basket, applying ``couponCode`` when usable."""
    idempotency = check_idempotency(request, db, identity.email)
    if isinstance(idempotency, JSONResponse):
        return idempotency
    reservation = idempotency

    try:
        order = OrderFinalizer(db).place_order(
            user_identity=identity.email,
            items=data.items,
            total_amount=data.total_amount,
            coupon_code=data.coupon_code,
        )
    except OrderDeskError as e:
        release_idempotency_key(db, identity.email, reservation)
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    except Exception:
        release_idempotency_key(db, identity.email, reservation)
        raise

    response = OrderCreatedResponse(order_id=order.id)  # type: ignore[arg-type]
    if isinstance(reservation, IdempotencyResult):
        body = response.model_dump(mode="json", by_alias=True)
        record_idempotency_response(db, identity.email, reservation.key, 201, body)

    return response


@router.get(
    "/",
    response_model=OrderListResponse,
    summary="List my orders",
    responses={401: {"model": MessageResponse, "description": "Missing or invalid token"}},
)
async def list_orders(
    order_by: str | None = Query(default=None),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> OrderListResponse:
    """List the caller's own orders, newest first."""
    orders = OrderFinalizer(db).list_orders(identity.email, order_by=order_by)
    return OrderListResponse(orders=[OrderResponse.model_validate(o) for o in orders])


@router.get(
    "/{order_id}",
    response_model=OrderDetailResponse,
    summary="Get order",
    responses={
        401: {"model": MessageResponse, "description": "Missing or invalid token"},
        403: {"model": MessageResponse, "description": "Not the owner and not an admin"},
        404: {"model": MessageResponse, "description": "Order not found"},
    },
)
async def get_order(
    order_id: UUID,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> OrderDetailResponse:
    """Get one order. Owners and admins only."""
    try:
        order = OrderFinalizer(db).get_order(order_id, identity.email, identity.is_admin)
    except OrderDeskError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    return OrderDetailResponse(order=OrderResponse.model_validate(order))


@router.put(
    "/{order_id}/status",
    response_model=OrderStatusUpdateResponse,
    summary="Update order status",
    responses={
        400: {"model": MessageResponse, "description": "Invalid status or transition"},
        401: {"model": MessageResponse, "description": "Missing or invalid token"},
        403: {"model": MessageResponse, "description": "Admin only"},
        404: {"model": MessageResponse, "description": "Order not found"},
    },
)
async def update_order_status(
    order_id: UUID,
    data: OrderStatusUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin),
) -> OrderStatusUpdateResponse:
    """Move an order to a new fulfillment status."""
    try:
        order = OrderFinalizer(db).update_status(order_id, data.status, identity)
    except OrderDeskError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    return OrderStatusUpdateResponse(order=OrderResponse.model_validate(order))
