# courier_core/modules/payments/gate.py
"""
Payment gate rules.

The sender pays at or before pickup (prepaid shipment); the receiver pays
at or before delivery (collect on delivery). The state machine asks
``payment_precondition`` before letting an order be picked up or
delivered, and the payment service uses the ``plan_*`` helpers to work out
what a payment action writes.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from courier_core.core.exceptions import OrderNotPayable, ValidationError
from courier_core.shared.schemas.enums import (
    OrderEvent, OrderStatus, PaymentResponsibility, PaymentStatus
)

# Payment can only be recorded while a driver holds the package
PAYABLE_STATUSES = frozenset({
    OrderStatus.ASSIGNED.value,
    OrderStatus.PICKED_UP.value,
    OrderStatus.IN_TRANSIT.value,
})

# Which party must have paid before the event may fire
PAYMENT_GATES = {
    OrderEvent.MARK_PICKED_UP: PaymentResponsibility.SENDER,
    OrderEvent.MARK_DELIVERED: PaymentResponsibility.RECEIVER,
}


def payment_precondition(order, event: OrderEvent) -> Optional[str]:
    """Return the failed payment precondition for ``event``, or None when it may fire"""
    responsible = PAYMENT_GATES.get(event)
    if responsible is None or order.payment_responsibility != responsible.value:
        return None
    if order.payment_status != PaymentStatus.PAID.value:
        return (
            f"{responsible.value} payment must be collected first "
            f"(payment_status is '{order.payment_status}')"
        )
    return None


def is_payment_due(order) -> bool:
    """True when the driver should collect payment at the order's current stage"""
    if order.payment_status == PaymentStatus.PAID.value:
        return False
    if order.payment_responsibility == PaymentResponsibility.SENDER.value:
        return order.status == OrderStatus.ASSIGNED.value
    return order.status in (OrderStatus.PICKED_UP.value, OrderStatus.IN_TRANSIT.value)


def _ensure_payable(order) -> None:
    if order.status not in PAYABLE_STATUSES:
        raise OrderNotPayable(order.id, f"order status is '{order.status}'")


def plan_mark_paid(order, amount: Decimal, now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
    """Values to write when payment is collected, None if it was already recorded"""
    _ensure_payable(order)

    if order.payment_status == PaymentStatus.PAID.value:
        return None

    if amount is None or amount <= 0:
        raise ValidationError("Collected amount must be positive", {"amount": str(amount)})
    if amount < Decimal(order.cost):
        raise ValidationError(
            "Collected amount is lower than the order cost",
            {"amount": str(amount), "cost": str(order.cost)},
        )

    return {
        "payment_status": PaymentStatus.PAID.value,
        "amount_collected": amount,
        "paid_at": now or datetime.now(),
    }


def plan_mark_failed(order) -> Optional[Dict[str, Any]]:
    _ensure_payable(order)

    if order.payment_status == PaymentStatus.FAILED.value:
        return None
    if order.payment_status == PaymentStatus.PAID.value:
        raise OrderNotPayable(order.id, "payment was already collected")

    return {"payment_status": PaymentStatus.FAILED.value}


def plan_mark_refunded(order) -> Optional[Dict[str, Any]]:
    if order.payment_status == PaymentStatus.REFUNDED.value:
        return None
    if order.payment_status != PaymentStatus.PAID.value:
        raise OrderNotPayable(order.id, "only paid orders can be refunded")

    return {"payment_status": PaymentStatus.REFUNDED.value}
