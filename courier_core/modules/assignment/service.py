# courier_core/modules/assignment/service.py
from typing import Optional
from sqlalchemy.orm import Session
import logging

from courier_core.core.exceptions import (
    NotFound, AlreadyAssigned, InvalidTransition, Conflict, PermissionDenied, ValidationError
)
from courier_core.shared.database.models import Order, User
from courier_core.shared.schemas.enums import OrderEvent, OrderStatus, UserRole
from courier_core.modules.orders.repository import OrderRepository
from courier_core.modules.orders.state_machine import plan_transition, plan_admin_assignment

logger = logging.getLogger(__name__)

class AssignmentService:
    """First-accept-wins driver assignment and admin (re)assignment"""

    def __init__(self, db: Session):
        self.db = db
        self.repository = OrderRepository(db)

    async def accept_order(self, order_id: str, driver: User) -> Order:
        """
        A driver takes a pending order.

        The write only matches while the row still has no driver and is
        still pending, so of two drivers racing on the same order exactly
        one wins; the other gets AlreadyAssigned and must re-read.
        """
        if driver.role != UserRole.DRIVER.value or not driver.is_active:
            raise PermissionDenied("Only active drivers can accept orders")

        order = self.repository.get(order_id)
        if not order:
            raise NotFound("Order", order_id)

        plan = plan_transition(order, OrderEvent.ACCEPT, driver_id=driver.id)

        applied = self.repository.apply_transition(
            order_id,
            expected={"driver_id": None, "status": OrderStatus.PENDING.value},
            values=plan.values,
            event=plan.event,
            from_status=plan.from_status.value,
            to_status=plan.to_status.value,
            actor=driver,
            details=plan.details,
        )

        if not applied:
            current = self.repository.get(order_id)
            if current is None:
                raise NotFound("Order", order_id)
            logger.warning(f"⚠️ Driver {driver.id} lost the race for order {order_id}")
            if current.driver_id is not None:
                raise AlreadyAssigned(order_id)
            raise InvalidTransition(current.status, OrderEvent.ACCEPT.value, "order is no longer pending")

        logger.info(f"🚚 Order {order_id} accepted by driver {driver.id}")
        return self.repository.get(order_id)

    async def admin_assign_driver(self, order_id: str, driver_id: str, admin: User,
                                  expected_version: Optional[int] = None) -> Order:
        """
        Assign (or replace) the driver of a non-terminal order.

        This is the only path that may change a driver once set; it is
        guarded by the order version instead of the driver column.
        """
        if not admin.is_admin:
            raise PermissionDenied("Only administrators can assign drivers")

        driver = self.db.query(User).filter(User.id == driver_id).first()
        if not driver:
            raise NotFound("User", driver_id)
        if driver.role != UserRole.DRIVER.value or not driver.is_active:
            raise ValidationError("Target user is not an active driver", {"driver_id": driver_id})

        order = self.repository.get(order_id)
        if not order:
            raise NotFound("Order", order_id)
        if expected_version is not None and expected_version != order.version:
            raise Conflict(order_id, expected_version, order.version)

        plan = plan_admin_assignment(order, driver_id)
        if plan is None:
            return order

        observed_version = order.version
        applied = self.repository.apply_transition(
            order_id,
            expected={"version": observed_version, "status": plan.from_status.value},
            values=plan.values,
            event=plan.event,
            from_status=plan.from_status.value,
            to_status=plan.to_status.value,
            actor=admin,
            details=plan.details,
        )
        if not applied:
            current = self.repository.get(order_id)
            raise Conflict(order_id, observed_version, current.version if current else None)

        logger.info(f"🚚 Admin {admin.id} assigned driver {driver_id} to order {order_id}")
        return self.repository.get(order_id)
