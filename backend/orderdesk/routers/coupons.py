"""Coupon API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from orderdesk.core.auth import Identity, require_admin
from orderdesk.core.config import settings
from orderdesk.core.database import get_db
from orderdesk.core.errors import OrderDeskError
from orderdesk.core.rate_limiter import RateLimiter
from orderdesk.schemas.base import MessageResponse
from orderdesk.schemas.coupon import (
    ApplyCouponRequest,
    ApplyCouponResponse,
    CouponCreate,
    CouponCreatedResponse,
    CouponListResponse,
    CouponResponse,
)
from orderdesk.services.coupon_registry import CouponRegistry
from orderdesk.services.coupon_service import CouponApplicationService

router = APIRouter()

# Module-level rate limiter instance for coupon code attempts
apply_rate_limiter = RateLimiter(
    max_requests=settings.RATE_LIMIT_COUPON_APPLY_PER_MINUTE,
    window_seconds=60,
)


def _check_apply_rate_limit(request: Request) -> None:
    """Dependency that limits coupon application attempts per client host."""
    key = request.client.host if request.client else "unknown"
    if not apply_rate_limiter.is_allowed(key):
        raise HTTPException(
            status_code=429,
            detail="Rate limit exceeded. Maximum "
            f"{apply_rate_limiter.max_requests} coupon attempts per minute.",
            headers={"Retry-After": str(apply_rate_limiter.retry_after(key))},
        )


@router.post(
    "/",
    response_model=CouponCreatedResponse,
    status_code=201,
    summary="Create coupon",
    responses={
        400: {"model": MessageResponse, "description": "Missing fields or coupon code already exists"},
        401: {"model": MessageResponse, "description": "Missing or invalid token"},
        403: {"model": MessageResponse, "description": "Admin only"},
    },
)
async def create_coupon(
    data: CouponCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin),
) -> CouponCreatedResponse:
    """Create a new coupon."""
    try:
        coupon = CouponRegistry(db).create(data)
    except OrderDeskError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    return CouponCreatedResponse(coupon_id=coupon.id)  # type: ignore[arg-type]


@router.get(
    "/",
    response_model=CouponListResponse,
    summary="List coupons",
)
async def list_coupons(
    active: bool | None = Query(default=None),
    skip: int = Query(default=0, ge=0),
    limit: int | None = Query(default=None, ge=1, le=settings.COUPON_LIST_MAX_LIMIT),
    db: Session = Depends(get_db),
) -> CouponListResponse:
    """List coupons, newest first. ``?active=true`` keeps only active ones."""
    coupons = CouponRegistry(db).list_coupons(active_only=bool(active), skip=skip, limit=limit)
    return CouponListResponse(coupons=[CouponResponse.model_validate(c) for c in coupons])


@router.post(
    "/apply",
    response_model=ApplyCouponResponse,
    summary="Apply coupon to a basket",
    responses={
        400: {
            "model": MessageResponse,
            "description": "Coupon inactive, expired or exhausted, or invalid basketTotal",
        },
        404: {"model": MessageResponse, "description": "Coupon not found"},
        429: {"model": MessageResponse, "description": "Rate limit exceeded"},
    },
    dependencies=[Depends(_check_apply_rate_limit)],
)
async def apply_coupon(
    data: ApplyCouponRequest,
    db: Session = Depends(get_db),
) -> ApplyCouponResponse:
    """Apply a coupon to a basket total and consume one use of it."""
    try:
        applied = CouponApplicationService(db).apply(data.code, data.basket_total)
    except OrderDeskError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None

    return ApplyCouponResponse(
        code=applied.code,
        discount_type=applied.discount_type,
        discount_value=applied.discount_value,
        discount_amount=applied.discount_amount,
        new_total=applied.new_total,
    )
