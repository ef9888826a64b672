# courier_core/modules/payments/service.py
from typing import Optional, Tuple, Dict, Any
from decimal import Decimal
from sqlalchemy.orm import Session
import logging

from courier_core.core.exceptions import NotFound, Conflict, PermissionDenied
from courier_core.shared.database.models import Order, User
from courier_core.modules.orders.repository import OrderRepository
from .gate import plan_mark_paid, plan_mark_failed, plan_mark_refunded

logger = logging.getLogger(__name__)

class PaymentService:
    """Records the outcome of out-of-band cash/card collection.

    No payment processor is involved; the driver (or an admin) asserts the
    result and the gate decides whether it can be recorded.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repository = OrderRepository(db)

    async def collect_payment(self, order_id: str, amount: Decimal, actor: User,
                              expected_version: Optional[int] = None) -> Tuple[Order, bool]:
        """Mark the order paid. Returns (order, already_recorded); retries are no-ops."""
        order = self._load(order_id, expected_version)
        self._check_collector(order, actor)

        values = plan_mark_paid(order, amount)
        if values is None:
            logger.info(f"💰 Order {order_id} already paid - collect ignored")
            return order, True

        order = self._write(order, values, "collect_payment", actor, {"amount": str(amount)})
        logger.info(f"💰 Payment of {amount} collected on order {order_id} by {actor.role} {actor.id}")
        return order, False

    async def mark_failed(self, order_id: str, actor: User, reason: Optional[str] = None,
                          expected_version: Optional[int] = None) -> Tuple[Order, bool]:
        order = self._load(order_id, expected_version)
        self._check_collector(order, actor)

        values = plan_mark_failed(order)
        if values is None:
            return order, True

        order = self._write(order, values, "payment_failed", actor, {"reason": reason})
        logger.warning(f"⚠️ Payment failed on order {order_id}: {reason or 'no reason given'}")
        return order, False

    async def mark_refunded(self, order_id: str, actor: User, reason: Optional[str] = None,
                            expected_version: Optional[int] = None) -> Tuple[Order, bool]:
        if not actor.is_admin:
            raise PermissionDenied("Only administrators can record refunds")

        order = self._load(order_id, expected_version)
        values = plan_mark_refunded(order)
        if values is None:
            return order, True

        order = self._write(order, values, "payment_refunded", actor, {"reason": reason})
        logger.info(f"↩️ Order {order_id} refunded by admin {actor.id}")
        return order, False

    def _load(self, order_id: str, expected_version: Optional[int]) -> Order:
        order = self.repository.get(order_id)
        if not order:
            raise NotFound("Order", order_id)
        if expected_version is not None and expected_version != order.version:
            raise Conflict(order_id, expected_version, order.version)
        return order

    def _check_collector(self, order: Order, actor: User) -> None:
        if actor.is_admin:
            return
        if not actor.is_driver or order.driver_id != actor.id:
            raise PermissionDenied("Only the assigned driver or an admin can record payments")

    def _write(self, order: Order, values: Dict[str, Any], event: str, actor: User,
               details: Dict[str, Any]) -> Order:
        order_id = order.id
        observed_version = order.version
        status = order.status
        details = dict(details, payment_status=values["payment_status"])

        applied = self.repository.apply_transition(
            order_id,
            expected={"version": observed_version, "status": status},
            values=values,
            event=event,
            from_status=status,
            to_status=status,
            actor=actor,
            details=details,
        )
        if not applied:
            current = self.repository.get(order_id)
            raise Conflict(order_id, observed_version, current.version if current else None)

        return self.repository.get(order_id)
