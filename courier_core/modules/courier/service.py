# courier_core/modules/courier/service.py
from typing import Dict, Any, Optional, Tuple
from decimal import Decimal
from fastapi import UploadFile
from sqlalchemy.orm import Session

from courier_core.core.exceptions import InvalidTransition, PermissionDenied
from courier_core.shared.database.models import Order, User
from courier_core.shared.schemas.enums import (
    OrderEvent, OrderStatus, PaymentStatus, PaymentResponsibility, DeliverySpeed
)
from courier_core.shared.services.photo_storage import DeliveryPhotoStorage
from courier_core.modules.orders.service import OrderService
from courier_core.modules.orders.projections import OrderQueryService
from courier_core.modules.orders.repository import ACTIVE_DRIVER_STATUSES
from courier_core.modules.orders.schemas import OrderResponse, StatusUpdateRequest
from courier_core.modules.assignment.service import AssignmentService
from courier_core.modules.payments.service import PaymentService
from courier_core.modules.payments.gate import is_payment_due

class CourierService:
    """Driver-facing views and actions"""

    def __init__(self, db: Session, photo_storage: Optional[DeliveryPhotoStorage] = None):
        self.db = db
        self.orders = OrderService(db)
        self.queries = OrderQueryService(db)
        self.photo_storage = photo_storage

    async def get_available_orders(self, driver: User) -> Dict[str, Any]:
        """Open board: pending orders without a driver"""
        orders = self.queries.available_orders()

        breakdown = {
            "total": len(orders),
            "fragile": len([o for o in orders if o.fragile]),
            "express_or_same_day": len([o for o in orders if o.speed != DeliverySpeed.STANDARD.value]),
            "sender_pays": len([o for o in orders if o.payment_responsibility == PaymentResponsibility.SENDER.value]),
            "receiver_pays": len([o for o in orders if o.payment_responsibility == PaymentResponsibility.RECEIVER.value]),
        }

        return {
            "success": True,
            "message": "Orders available for pickup",
            "available_orders": [OrderResponse.model_validate(o) for o in orders],
            "count": len(orders),
            "breakdown": breakdown,
            "courier_info": {
                "name": driver.full_name,
                "driver_id": driver.id
            }
        }

    async def accept_order(self, order_id: str, driver: User) -> Order:
        return await AssignmentService(self.db).accept_order(order_id, driver)

    async def confirm_pickup(self, order_id: str, driver: User, expected_version: Optional[int] = None) -> Order:
        return await self.orders.update_status(
            order_id,
            StatusUpdateRequest(event=OrderEvent.MARK_PICKED_UP, expected_version=expected_version),
            driver
        )

    async def start_transit(self, order_id: str, driver: User, expected_version: Optional[int] = None) -> Order:
        return await self.orders.update_status(
            order_id,
            StatusUpdateRequest(event=OrderEvent.START_TRANSIT, expected_version=expected_version),
            driver
        )

    async def confirm_delivery(self, order_id: str, driver: User, delivery_photo_ref: Optional[str] = None,
                               delivery_notes: Optional[str] = None,
                               expected_version: Optional[int] = None) -> Order:
        return await self.orders.update_status(
            order_id,
            StatusUpdateRequest(
                event=OrderEvent.MARK_DELIVERED,
                expected_version=expected_version,
                delivery_photo_ref=delivery_photo_ref,
                delivery_notes=delivery_notes
            ),
            driver
        )

    async def collect_payment(self, order_id: str, amount: Decimal, driver: User,
                              expected_version: Optional[int] = None) -> Tuple[Order, bool]:
        return await PaymentService(self.db).collect_payment(order_id, amount, driver, expected_version)

    async def upload_delivery_photo(self, order_id: str, image_file: UploadFile, driver: User) -> str:
        """Store the proof photo; the returned reference is sent with confirm-delivery"""
        order = self.orders.get_order_or_404(order_id)
        if not driver.is_admin and order.driver_id != driver.id:
            raise PermissionDenied("Order is assigned to another driver")
        if order.status not in ACTIVE_DRIVER_STATUSES:
            raise InvalidTransition(order.status, "upload_delivery_photo", "order is not in progress")

        storage = self.photo_storage or DeliveryPhotoStorage()
        return await storage.upload_delivery_photo(image_file, order_id, driver.id)

    async def get_my_orders(self, driver: User) -> Dict[str, Any]:
        active = self.queries.driver_active_orders(driver.id)
        completed = self.queries.driver_completed_orders(driver.id)

        total = len(active) + len(completed)
        awaiting_payment = len([o for o in active if is_payment_due(o)])
        collected = sum(
            (o.amount_collected or Decimal("0")) for o in completed
            if o.payment_status == PaymentStatus.PAID.value
        )

        return {
            "success": True,
            "message": "Orders assigned to you",
            "active_orders": [OrderResponse.model_validate(o) for o in active],
            "completed_orders": [OrderResponse.model_validate(o) for o in completed],
            "count": total,
            "courier_stats": {
                "total_orders": total,
                "in_progress": len(active),
                "in_transit": len([o for o in active if o.status == OrderStatus.IN_TRANSIT.value]),
                "awaiting_payment": awaiting_payment,
                "completed": len(completed),
                "collected_amount": str(collected),
                "completion_rate": round(len(completed) / total * 100, 1) if total > 0 else 0
            }
        }
