# courier_core/modules/orders/service.py
from typing import Optional, List
from decimal import Decimal
from sqlalchemy.orm import Session
import logging

from courier_core.core.exceptions import (
    NotFound, Conflict, PermissionDenied, InvalidTransition, CourierCoreError
)
from courier_core.shared.database.models import Order, OrderEventLog, User
from courier_core.shared.schemas.enums import OrderEvent, OrderStatus, UserRole
from .repository import OrderRepository
from .pricing import compute_cost
from .schemas import OrderCreate, PackageAttributes, StatusUpdateRequest
from .state_machine import plan_transition, TransitionPlan

logger = logging.getLogger(__name__)

DRIVER_EVENTS = (OrderEvent.MARK_PICKED_UP, OrderEvent.START_TRANSIT, OrderEvent.MARK_DELIVERED)

class OrderService:
    """Order lifecycle: creation, status events, cancellation and admin overrides"""

    def __init__(self, db: Session):
        self.db = db
        self.repository = OrderRepository(db)

    # ==================== CREATION ====================

    def quote(self, distance_km: Decimal, package: PackageAttributes) -> Decimal:
        return compute_cost(distance_km, package.weight, package.fragile, package.speed)

    async def create_order(self, order_data: OrderCreate, customer: User) -> Order:
        """Create a pending order with its cost frozen at confirmation time"""
        if customer.role != UserRole.CUSTOMER.value:
            raise PermissionDenied("Only customers can place orders")

        package = order_data.package
        cost = self.quote(order_data.distance_km, package)

        order = self.repository.create({
            "customer_id": customer.id,
            "pickup_address": order_data.pickup_address,
            "dropoff_address": order_data.dropoff_address,
            "distance_km": order_data.distance_km,
            "eta_minutes": order_data.eta_minutes,
            "size": package.size.value,
            "weight": package.weight.value,
            "fragile": package.fragile,
            "speed": package.speed.value,
            "instructions": package.instructions,
            "cost": cost,
            "payment_responsibility": order_data.payment_responsibility.value,
            "payment_method": order_data.payment_method.value,
        }, customer)

        logger.info(f"📦 Order {order.id} created by customer {customer.id} - cost {cost}")
        return order

    # ==================== READS ====================

    def get_order_or_404(self, order_id: str) -> Order:
        order = self.repository.get(order_id)
        if not order:
            raise NotFound("Order", order_id)
        return order

    async def get_order(self, order_id: str, actor: User) -> Order:
        order = self.get_order_or_404(order_id)
        self._check_visibility(order, actor)
        return order

    async def get_history(self, order_id: str, actor: User) -> List[OrderEventLog]:
        order = self.get_order_or_404(order_id)
        self._check_visibility(order, actor)
        return self.repository.get_history(order_id)

    # ==================== TRANSITIONS ====================

    async def update_status(self, order_id: str, request: StatusUpdateRequest, actor: User) -> Order:
        """Apply a lifecycle event on behalf of ``actor``"""
        if request.event == OrderEvent.ACCEPT:
            # Acceptance has its own compare-and-swap on driver_id
            from courier_core.modules.assignment.service import AssignmentService
            return await AssignmentService(self.db).accept_order(order_id, actor)

        if request.event == OrderEvent.CANCEL:
            return await self.cancel_order(order_id, request.reason, actor, request.expected_version)

        if request.event == OrderEvent.FORCE_SET_STATUS:
            return await self.force_set_status(
                order_id, request.target_status, actor, request.expected_version, request.reason
            )

        order = self.get_order_or_404(order_id)
        self._check_driver_authority(order, actor)
        self._check_expected_version(order, request.expected_version)

        plan = self._plan(order, request.event, delivery_photo_ref=request.delivery_photo_ref,
                          delivery_notes=request.delivery_notes)
        return self._commit(order, plan, actor)

    async def cancel_order(self, order_id: str, reason: Optional[str], actor: User,
                           expected_version: Optional[int] = None) -> Order:
        order = self.get_order_or_404(order_id)

        if not actor.is_admin:
            is_owner = order.customer_id == actor.id
            is_assigned_driver = actor.is_driver and order.driver_id == actor.id
            if not (is_owner or is_assigned_driver):
                raise PermissionDenied("Only the customer, the assigned driver or an admin can cancel this order")

        self._check_expected_version(order, expected_version)
        plan = self._plan(order, OrderEvent.CANCEL, reason=reason)
        return self._commit(order, plan, actor)

    async def force_set_status(self, order_id: str, target_status: Optional[OrderStatus], actor: User,
                               expected_version: Optional[int] = None, reason: Optional[str] = None) -> Order:
        """Administrative override: bypasses the payment gate"""
        if not actor.is_admin:
            raise PermissionDenied("Only administrators can override an order status")

        order = self.get_order_or_404(order_id)
        self._check_expected_version(order, expected_version)
        plan = self._plan(order, OrderEvent.FORCE_SET_STATUS, target_status=target_status, reason=reason)
        return self._commit(order, plan, actor)

    # ==================== HELPERS ====================

    def _plan(self, order: Order, event: OrderEvent, **payload) -> TransitionPlan:
        try:
            return plan_transition(order, event, **payload)
        except CourierCoreError as e:
            logger.warning(f"⚠️ Rejected '{OrderEvent(event).value}' on order {order.id}: {e.message}")
            raise

    def _commit(self, order: Order, plan: TransitionPlan, actor: Optional[User]) -> Order:
        """Write a planned transition guarded by the version and status that were read"""
        order_id = order.id
        observed_version = order.version

        applied = self.repository.apply_transition(
            order_id,
            expected={"version": observed_version, "status": plan.from_status.value},
            values=plan.values,
            event=plan.event,
            from_status=plan.from_status.value,
            to_status=plan.to_status.value,
            actor=actor,
            details=plan.details,
        )

        if not applied:
            current = self.repository.get(order_id)
            if current is None:
                raise NotFound("Order", order_id)
            logger.warning(
                f"⚠️ Version conflict on order {order_id}: expected v{observed_version}, found v{current.version}"
            )
            raise Conflict(order_id, observed_version, current.version)

        logger.info(
            f"✅ Order {order_id}: {plan.from_status.value} -> {plan.to_status.value} "
            f"({plan.event} by {actor.role if actor else 'system'})"
        )
        return self.get_order_or_404(order_id)

    def _check_expected_version(self, order: Order, expected_version: Optional[int]) -> None:
        if expected_version is not None and expected_version != order.version:
            raise Conflict(order.id, expected_version, order.version)

    def _check_driver_authority(self, order: Order, actor: User) -> None:
        if actor.is_admin:
            return
        if not actor.is_driver:
            raise PermissionDenied("Only drivers or administrators can update the delivery status")
        if order.driver_id is None:
            raise InvalidTransition(order.status, "update_status", "order has no assigned driver")
        if order.driver_id != actor.id:
            raise PermissionDenied("Order is assigned to another driver")

    def _check_visibility(self, order: Order, actor: User) -> None:
        if actor.is_admin or order.customer_id == actor.id:
            return
        if actor.is_driver and (order.driver_id == actor.id or
                                (order.driver_id is None and order.status == OrderStatus.PENDING.value)):
            return
        raise PermissionDenied("You do not have access to this order")
