"""API routes for pickup orders."""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from pickup.api.dependencies import get_services
from pickup.config import get_settings
from pickup.models.order import Order, OrderStatus, StoreLocation
from pickup.services import OrderServices, timer
from pickup.services.lifecycle import PlaceOrderRequest
from pickup.utils.clock import utcnow
from pickup.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


# Request/Response Models


class TransitionRequest(BaseModel):
    """Optional staff note attached to a status change."""

    note: str | None = None


class CancelOrderRequest(BaseModel):
    """Cancellation with an optional reason shown to the customer."""

    reason: str | None = None


class SuggestReplacementRequest(BaseModel):
    """Staff proposal to replace an unavailable item."""

    original_product_id: str
    replacement_product_id: str
    note: str | None = None


class PickupWindow(BaseModel):
    """Pickup timer state of a ready order."""

    deadline: datetime
    minutes_remaining: int
    remaining: str
    is_expiring_soon: bool


class OrderSummary(BaseModel):
    """Order list entry for the admin dashboard."""

    id: UUID
    order_number: str
    customer_name: str
    customer_phone: str | None
    status: OrderStatus
    item_count: int
    total: Decimal
    store_location: StoreLocation
    created_at: datetime
    pickup: PickupWindow | None = None


class OrderTrackingResponse(BaseModel):
    """Customer tracking view."""

    order: Order
    pickup: PickupWindow | None = None


def pickup_window(order: Order, now: datetime) -> PickupWindow | None:
    """Timer view for ready orders; None in any other status."""
    if order.status != OrderStatus.READY or order.timeline.ready_at is None:
        return None

    settings = get_settings()
    window = timedelta(minutes=settings.pickup_window_minutes)
    threshold = timedelta(minutes=settings.expiring_soon_minutes)
    left = timer.remaining(order.timeline.ready_at, now, window)

    return PickupWindow(
        deadline=timer.pickup_deadline(order.timeline.ready_at, window),
        minutes_remaining=timer.minutes_remaining(left),
        remaining=timer.format_remaining(left),
        is_expiring_soon=timer.is_expiring_soon(order.timeline.ready_at, now, window, threshold),
    )


def to_summary(order: Order, now: datetime) -> OrderSummary:
    return OrderSummary(
        id=order.id,
        order_number=order.order_number,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        status=order.status,
        item_count=order.item_count,
        total=order.total,
        store_location=order.store_location,
        created_at=order.created_at,
        pickup=pickup_window(order, now),
    )


# Customer endpoints


@router.post(
    "/orders",
    response_model=Order,
    status_code=status.HTTP_201_CREATED,
)
async def place_order(
    request: PlaceOrderRequest,
    services: OrderServices = Depends(get_services),
) -> Order:
    """
    Place a pickup order.

    Called by the storefront checkout. The customer and the store are both
    notified on the customer's chosen channel.
    """
    order = await services.lifecycle.place_order(request)

    logger.info(
        "order_placed",
        order_id=str(order.id),
        order_number=order.order_number,
        notification_method=order.notification_method.value,
    )
    return order


@router.get("/orders/track", response_model=OrderTrackingResponse)
async def track_order(
    order_number: str = Query(..., min_length=1),
    contact: str = Query(..., min_length=1, description="Phone number or email on the order"),
    services: OrderServices = Depends(get_services),
) -> OrderTrackingResponse:
    """Look up an order by its number and the customer's phone or email."""
    order = await services.lifecycle.track(order_number, contact)
    return OrderTrackingResponse(order=order, pickup=pickup_window(order, utcnow()))


# Admin endpoints


@router.get("/admin/orders", response_model=list[OrderSummary])
async def list_orders(
    order_status: list[OrderStatus] | None = Query(None, alias="status"),
    store_location: StoreLocation | None = None,
    search: str | None = None,
    services: OrderServices = Depends(get_services),
) -> list[OrderSummary]:
    """List orders, newest first."""
    orders = await services.repository.list_orders(
        statuses=order_status,
        store_location=store_location,
        search=search,
    )
    now = utcnow()
    return [to_summary(order, now) for order in orders]


@router.get("/admin/orders/stats")
async def get_order_stats(
    services: OrderServices = Depends(get_services),
) -> dict[str, Any]:
    """Order counts for today, this week and per store."""
    return await services.repository.stats()


@router.get("/admin/orders/{order_id}", response_model=Order)
async def get_order(
    order_id: UUID,
    services: OrderServices = Depends(get_services),
) -> Order:
    """Get order details including the communication log."""
    return await services.lifecycle.get_order(order_id)


@router.post("/admin/orders/{order_id}/confirm", response_model=Order)
async def confirm_order(
    order_id: UUID,
    request: TransitionRequest = TransitionRequest(),
    services: OrderServices = Depends(get_services),
) -> Order:
    """Confirm a pending order."""
    return await services.lifecycle.confirm(order_id, note=request.note)


@router.post("/admin/orders/{order_id}/ready", response_model=Order)
async def mark_order_ready(
    order_id: UUID,
    request: TransitionRequest = TransitionRequest(),
    services: OrderServices = Depends(get_services),
) -> Order:
    """Mark a confirmed order ready; starts the pickup window."""
    return await services.lifecycle.mark_ready(order_id, note=request.note)


@router.post("/admin/orders/{order_id}/picked-up", response_model=Order)
async def mark_order_picked_up(
    order_id: UUID,
    request: TransitionRequest = TransitionRequest(),
    services: OrderServices = Depends(get_services),
) -> Order:
    """Record that the customer collected the order."""
    return await services.lifecycle.mark_picked_up(order_id, note=request.note)


@router.post("/admin/orders/{order_id}/no-show", response_model=Order)
async def mark_order_no_show(
    order_id: UUID,
    request: TransitionRequest = TransitionRequest(),
    services: OrderServices = Depends(get_services),
) -> Order:
    """Manually mark a ready order as not collected."""
    return await services.lifecycle.mark_no_show(order_id, note=request.note)


@router.post("/admin/orders/{order_id}/cancel", response_model=Order)
async def cancel_order(
    order_id: UUID,
    request: CancelOrderRequest = CancelOrderRequest(),
    services: OrderServices = Depends(get_services),
) -> Order:
    """Cancel a pending or confirmed order."""
    return await services.lifecycle.cancel(order_id, reason=request.reason)


@router.post("/admin/orders/{order_id}/suggest-replacement", response_model=Order)
async def suggest_replacement(
    order_id: UUID,
    request: SuggestReplacementRequest,
    services: OrderServices = Depends(get_services),
) -> Order:
    """Text the customer a replacement for an unavailable item."""
    return await services.substitutions.suggest_replacement(
        order_id,
        request.original_product_id,
        request.replacement_product_id,
        note=request.note,
    )
