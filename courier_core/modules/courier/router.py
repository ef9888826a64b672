# courier_core/modules/courier/router.py
from fastapi import APIRouter, Depends, Path, File, UploadFile
from sqlalchemy.orm import Session

from courier_core.config.database import get_db
from courier_core.core.auth.dependencies import require_roles
from courier_core.shared.schemas.enums import UserRole
from courier_core.modules.orders.router import order_action_response
from courier_core.modules.orders.schemas import OrderActionResponse
from courier_core.modules.payments.router import payment_response
from courier_core.modules.payments.schemas import CollectPaymentRequest, PaymentActionResponse
from .service import CourierService
from .schemas import (
    PickupConfirmation, TransitStart, DeliveryConfirmation,
    AvailableOrdersResponse, MyOrdersResponse, DeliveryPhotoResponse
)

router = APIRouter()

driver_only = require_roles([UserRole.DRIVER.value])

@router.get("/available-orders", response_model=AvailableOrdersResponse)
async def get_available_orders(
    current_user = Depends(driver_only),
    db: Session = Depends(get_db)
):
    """
    Open board of pending orders without a driver

    **Includes:**
    - Route snapshot, package attributes and frozen cost
    - Who pays and how, so the driver knows when to collect
    - Breakdown counters for the board
    """
    service = CourierService(db)
    return await service.get_available_orders(current_user)

@router.post("/orders/{order_id}/accept", response_model=OrderActionResponse)
async def accept_order(
    order_id: str = Path(..., description="Order ID"),
    current_user = Depends(driver_only),
    db: Session = Depends(get_db)
):
    """
    Accept a pending order

    **Concurrency:**
    - Only one driver can take each order
    - The first accept wins; the others get `already_assigned`
    """
    service = CourierService(db)
    order = await service.accept_order(order_id, current_user)
    return order_action_response(order, "Order accepted")

@router.post("/orders/{order_id}/confirm-pickup", response_model=OrderActionResponse)
async def confirm_pickup(
    pickup: PickupConfirmation = PickupConfirmation(),
    order_id: str = Path(..., description="Order ID"),
    current_user = Depends(driver_only),
    db: Session = Depends(get_db)
):
    """
    Confirm the package was picked up

    **Validations:**
    - Only the assigned driver can confirm
    - When the sender pays, payment must be collected first
    """
    service = CourierService(db)
    order = await service.confirm_pickup(order_id, current_user, pickup.expected_version)
    return order_action_response(order, "Pickup confirmed")

@router.post("/orders/{order_id}/start-transit", response_model=OrderActionResponse)
async def start_transit(
    transit: TransitStart = TransitStart(),
    order_id: str = Path(..., description="Order ID"),
    current_user = Depends(driver_only),
    db: Session = Depends(get_db)
):
    service = CourierService(db)
    order = await service.start_transit(order_id, current_user, transit.expected_version)
    return order_action_response(order, "Order in transit")

@router.post("/orders/{order_id}/confirm-delivery", response_model=OrderActionResponse)
async def confirm_delivery(
    delivery: DeliveryConfirmation = DeliveryConfirmation(),
    order_id: str = Path(..., description="Order ID"),
    current_user = Depends(driver_only),
    db: Session = Depends(get_db)
):
    """
    Confirm delivery

    **Validations:**
    - Order must be picked up or in transit
    - When the receiver pays, payment must be collected first
    - Photo reference and notes are stored with the status change
    """
    service = CourierService(db)
    order = await service.confirm_delivery(
        order_id, current_user, delivery.delivery_photo_ref, delivery.delivery_notes, delivery.expected_version
    )
    return order_action_response(order, "Delivery confirmed")

@router.post("/orders/{order_id}/collect-payment", response_model=PaymentActionResponse)
async def collect_payment(
    payment: CollectPaymentRequest,
    order_id: str = Path(..., description="Order ID"),
    current_user = Depends(driver_only),
    db: Session = Depends(get_db)
):
    """Record the cash/card payment collected from the responsible party"""
    service = CourierService(db)
    order, already = await service.collect_payment(order_id, payment.amount, current_user, payment.expected_version)
    return payment_response(order, already, "Payment already recorded" if already else "Payment collected")

@router.post("/orders/{order_id}/delivery-photo", response_model=DeliveryPhotoResponse)
async def upload_delivery_photo(
    order_id: str = Path(..., description="Order ID"),
    photo: UploadFile = File(..., description="Proof of delivery photo"),
    current_user = Depends(driver_only),
    db: Session = Depends(get_db)
):
    """Upload a proof-of-delivery photo and get the reference to send with confirm-delivery"""
    service = CourierService(db)
    photo_ref = await service.upload_delivery_photo(order_id, photo, current_user)
    return DeliveryPhotoResponse(
        success=True,
        message="Delivery photo stored",
        order_id=order_id,
        delivery_photo_ref=photo_ref
    )

@router.get("/my-orders", response_model=MyOrdersResponse)
async def get_my_orders(
    current_user = Depends(driver_only),
    db: Session = Depends(get_db)
):
    """
    Orders assigned to the current driver

    **Includes:**
    - Orders in progress
    - Completed deliveries
    - Counters for payments still to collect
    """
    service = CourierService(db)
    return await service.get_my_orders(current_user)

@router.get("/health")
async def courier_health():
    """Health check for the courier module"""
    return {
        "service": "courier",
        "status": "healthy",
        "version": "1.0.0",
        "features": [
            "Open order board",
            "First-accept-wins assignment",
            "Pickup, transit and delivery confirmation",
            "Payment collection",
            "Proof of delivery photo"
        ]
    }
