# courier_core/modules/orders/router.py
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session
from typing import Optional

from courier_core.config.database import get_db
from courier_core.core.auth.dependencies import get_current_user, require_roles
from courier_core.shared.schemas.enums import OrderStatus, UserRole
from .service import OrderService
from .state_machine import allowed_events
from .projections import OrderQueryService
from .schemas import (
    OrderCreate, QuoteRequest, QuoteResponse, StatusUpdateRequest, CancelRequest,
    OrderActionResponse, OrderListResponse, OrderHistoryResponse, OrderResponse,
    OrderEventResponse, OrderListFilter, OrderSort
)

router = APIRouter()

NEXT_STEPS = {
    OrderStatus.PENDING.value: "Waiting for a driver to accept the order",
    OrderStatus.ASSIGNED.value: "Driver is heading to the pickup address",
    OrderStatus.PICKED_UP.value: "Package picked up",
    OrderStatus.IN_TRANSIT.value: "Package on its way to the dropoff address",
    OrderStatus.DELIVERED.value: "Order completed",
    OrderStatus.CANCELLED.value: "Order cancelled",
}

def order_action_response(order, message: str) -> OrderActionResponse:
    return OrderActionResponse(
        success=True,
        message=message,
        order=OrderResponse.model_validate(order),
        next_step=NEXT_STEPS.get(order.status),
        allowed_events=allowed_events(order.status)
    )

@router.post("/quote", response_model=QuoteResponse)
async def quote_order(
    quote: QuoteRequest,
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Price preview for a route and package

    Nothing is stored; the same formula is applied again when the order is
    confirmed.
    """
    service = OrderService(db)
    cost = service.quote(quote.distance_km, quote.package)
    return QuoteResponse(
        success=True,
        message="Estimated delivery cost",
        cost=cost,
        distance_km=quote.distance_km,
        package=quote.package
    )

@router.post("", response_model=OrderActionResponse)
async def create_order(
    order_data: OrderCreate,
    current_user = Depends(require_roles([UserRole.CUSTOMER.value])),
    db: Session = Depends(get_db)
):
    """
    Confirm a delivery order

    **Behaviour:**
    - Cost is computed from distance, weight, fragility and speed and frozen
    - Distance and ETA are stored as the snapshot sent by the client
    - The order starts in `pending` with payment `pending`
    """
    service = OrderService(db)
    order = await service.create_order(order_data, current_user)
    return order_action_response(order, "Order created")

@router.get("", response_model=OrderListResponse)
async def list_orders(
    filter: OrderListFilter = Query(OrderListFilter.ALL, description="Which orders to list"),
    sort: OrderSort = Query(OrderSort.NEWEST),
    search: Optional[str] = Query(None, description="Matches addresses, customer or driver name"),
    status: Optional[OrderStatus] = Query(None),
    customer_id: Optional[str] = Query(None),
    driver_id: Optional[str] = Query(None),
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    List orders visible to the current user

    - Customers: their own orders
    - Drivers: the open board plus their own orders
    - Admins: everything
    """
    orders = OrderQueryService(db).list_orders(
        current_user, filter, sort, search, status, customer_id, driver_id
    )
    return OrderListResponse(
        success=True,
        message=f"{len(orders)} orders",
        orders=[OrderResponse.model_validate(o) for o in orders],
        count=len(orders),
        filter=filter,
        sort=sort
    )

@router.get("/health")
async def orders_health():
    """Health check for the orders module"""
    return {
        "service": "orders",
        "status": "healthy",
        "version": "1.0.0",
        "features": [
            "Order creation with frozen cost",
            "Lifecycle state machine",
            "Payment gated pickup and delivery",
            "Optimistic concurrency",
            "Status history"
        ]
    }

@router.get("/{order_id}", response_model=OrderActionResponse)
async def get_order(
    order_id: str = Path(..., description="Order ID"),
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = OrderService(db)
    order = await service.get_order(order_id, current_user)
    return order_action_response(order, "Order details")

@router.get("/{order_id}/history", response_model=OrderHistoryResponse)
async def get_order_history(
    order_id: str = Path(..., description="Order ID"),
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Status history of an order, oldest first"""
    service = OrderService(db)
    events = await service.get_history(order_id, current_user)
    return OrderHistoryResponse(
        success=True,
        message=f"{len(events)} events",
        order_id=order_id,
        events=[OrderEventResponse.model_validate(e) for e in events]
    )

@router.post("/{order_id}/status", response_model=OrderActionResponse)
async def update_order_status(
    update: StatusUpdateRequest,
    order_id: str = Path(..., description="Order ID"),
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Apply a lifecycle event

    **Events:**
    - `accept`: driver takes a pending order (first accept wins)
    - `mark_picked_up`: requires sender payment when the sender pays
    - `start_transit`
    - `mark_delivered`: requires receiver payment when the receiver pays;
      photo reference and notes are stored with the status change
    - `cancel`: any non-terminal order, `reason` required
    - `force_set_status`: admin only, `target_status` required

    Send `expected_version` to make the write fail with `conflict` when the
    order changed since it was read.
    """
    service = OrderService(db)
    order = await service.update_status(order_id, update, current_user)
    return order_action_response(order, f"Event '{update.event.value}' applied")

@router.post("/{order_id}/cancel", response_model=OrderActionResponse)
async def cancel_order(
    cancel: CancelRequest,
    order_id: str = Path(..., description="Order ID"),
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Cancel a non-terminal order regardless of its payment state"""
    service = OrderService(db)
    order = await service.cancel_order(order_id, cancel.reason, current_user, cancel.expected_version)
    return order_action_response(order, "Order cancelled")
