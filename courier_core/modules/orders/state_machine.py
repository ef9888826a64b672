# courier_core/modules/orders/state_machine.py
"""
Order lifecycle rules.

    pending -> assigned -> picked_up -> in_transit -> delivered
    (any non-terminal) -> cancelled

``plan_transition`` never writes anything: it checks the guards against
the order as it was read and returns the column values the repository
must write with a compare-and-swap. A rejected event raises before any
write happens.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, FrozenSet, Optional, Tuple

from courier_core.core.exceptions import AlreadyAssigned, InvalidTransition, ValidationError
from courier_core.modules.payments.gate import payment_precondition
from courier_core.shared.schemas.enums import OrderEvent, OrderStatus

ADMIN_ASSIGN_EVENT = "admin_assign_driver"

# event -> (allowed source states, target state)
TRANSITIONS: Dict[OrderEvent, Tuple[FrozenSet[OrderStatus], OrderStatus]] = {
    OrderEvent.ACCEPT: (frozenset({OrderStatus.PENDING}), OrderStatus.ASSIGNED),
    OrderEvent.MARK_PICKED_UP: (frozenset({OrderStatus.ASSIGNED}), OrderStatus.PICKED_UP),
    OrderEvent.START_TRANSIT: (frozenset({OrderStatus.PICKED_UP}), OrderStatus.IN_TRANSIT),
    OrderEvent.MARK_DELIVERED: (
        frozenset({OrderStatus.PICKED_UP, OrderStatus.IN_TRANSIT}),
        OrderStatus.DELIVERED,
    ),
}

# Forward path, used to know which stamps an administrative rollback undoes
FORWARD_PATH = (
    OrderStatus.PENDING,
    OrderStatus.ASSIGNED,
    OrderStatus.PICKED_UP,
    OrderStatus.IN_TRANSIT,
    OrderStatus.DELIVERED,
)

STATUS_TIMESTAMPS = {
    OrderStatus.ASSIGNED: "assigned_at",
    OrderStatus.PICKED_UP: "picked_up_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.CANCELLED: "cancelled_at",
}

DELIVERY_PROOF_FIELDS = ("delivery_photo_ref", "delivery_notes")

# States that only make sense with a driver on the order
DRIVER_STATES = frozenset({
    OrderStatus.ASSIGNED, OrderStatus.PICKED_UP, OrderStatus.IN_TRANSIT, OrderStatus.DELIVERED,
})


@dataclass
class TransitionPlan:
    event: str
    from_status: OrderStatus
    to_status: OrderStatus
    values: Dict[str, Any] = field(default_factory=dict)
    details: Dict[str, Any] = field(default_factory=dict)


def allowed_events(status: OrderStatus) -> list:
    """Events a regular actor can fire from ``status`` (admin override excluded)"""
    status = OrderStatus(status)
    if status.is_terminal:
        return []
    events = [event for event, (sources, _) in TRANSITIONS.items() if status in sources]
    events.append(OrderEvent.CANCEL)
    return events


def plan_transition(
    order,
    event: OrderEvent,
    *,
    now: Optional[datetime] = None,
    driver_id: Optional[str] = None,
    delivery_photo_ref: Optional[str] = None,
    delivery_notes: Optional[str] = None,
    reason: Optional[str] = None,
    target_status: Optional[OrderStatus] = None,
) -> TransitionPlan:
    event = OrderEvent(event)
    current = OrderStatus(order.status)
    now = now or datetime.now()

    if event == OrderEvent.FORCE_SET_STATUS:
        return _plan_force(order, current, target_status, now, reason)

    if event == OrderEvent.CANCEL:
        return _plan_cancel(current, reason, now)

    if event == OrderEvent.ACCEPT and order.driver_id is not None:
        raise AlreadyAssigned(order.id)

    sources, target = TRANSITIONS[event]
    if current not in sources:
        expected = ", ".join(sorted(s.value for s in sources))
        raise InvalidTransition(current.value, event.value, f"order status must be one of: {expected}")

    failed_payment = payment_precondition(order, event)
    if failed_payment:
        raise InvalidTransition(current.value, event.value, failed_payment)

    values: Dict[str, Any] = {"status": target.value}
    timestamp_field = STATUS_TIMESTAMPS.get(target)
    if timestamp_field:
        values[timestamp_field] = now

    details: Dict[str, Any] = {}
    if event == OrderEvent.ACCEPT:
        if not driver_id:
            raise ValidationError("driver_id is required to accept an order")
        values["driver_id"] = driver_id
        details["driver_id"] = driver_id
    elif event == OrderEvent.MARK_DELIVERED:
        # Proof travels with the status change, never in a separate write
        values["delivery_photo_ref"] = delivery_photo_ref
        values["delivery_notes"] = delivery_notes
        details["has_photo"] = delivery_photo_ref is not None

    return TransitionPlan(event.value, current, target, values, details)


def _plan_cancel(current: OrderStatus, reason: Optional[str], now: datetime) -> TransitionPlan:
    if current.is_terminal:
        raise InvalidTransition(current.value, OrderEvent.CANCEL.value, "order is already in a terminal state")
    if not reason or not reason.strip():
        raise ValidationError("A cancellation reason is required")

    values = {
        "status": OrderStatus.CANCELLED.value,
        "cancelled_at": now,
        "cancel_reason": reason.strip(),
    }
    return TransitionPlan(OrderEvent.CANCEL.value, current, OrderStatus.CANCELLED, values, {"reason": reason.strip()})


def _plan_force(order, current: OrderStatus, target: Optional[OrderStatus], now: datetime, reason: Optional[str]) -> TransitionPlan:
    if target is None:
        raise ValidationError("target_status is required for a status override")
    target = OrderStatus(target)
    if target == current:
        raise InvalidTransition(current.value, OrderEvent.FORCE_SET_STATUS.value, "order is already in that status")
    if target == OrderStatus.PENDING and order.driver_id is not None:
        raise InvalidTransition(
            current.value, OrderEvent.FORCE_SET_STATUS.value,
            "a pending order cannot keep an assigned driver",
        )
    if target in DRIVER_STATES and order.driver_id is None:
        raise InvalidTransition(
            current.value, OrderEvent.FORCE_SET_STATUS.value,
            f"a {target.value} order needs an assigned driver, assign one first",
        )

    values: Dict[str, Any] = {"status": target.value}

    timestamp_field = STATUS_TIMESTAMPS.get(target)
    if timestamp_field and getattr(order, timestamp_field) is None:
        values[timestamp_field] = now

    if target != OrderStatus.CANCELLED:
        values["cancelled_at"] = None
        values["cancel_reason"] = None
        # Undo the stamps of every state after the target on the forward path
        for later in FORWARD_PATH[FORWARD_PATH.index(target) + 1:]:
            later_field = STATUS_TIMESTAMPS.get(later)
            if later_field and getattr(order, later_field) is not None:
                values[later_field] = None
        if target != OrderStatus.DELIVERED:
            for proof_field in DELIVERY_PROOF_FIELDS:
                values[proof_field] = None
    else:
        if reason:
            values["cancel_reason"] = reason.strip()
        # A cancelled order was never delivered
        for delivered_field in ("delivered_at",) + DELIVERY_PROOF_FIELDS:
            if getattr(order, delivered_field) is not None:
                values[delivered_field] = None

    details = {
        "reason": reason,
        "previous": {
            name: _serialize(getattr(order, name))
            for name in values
            if name != "status" and getattr(order, name) is not None
        },
    }
    return TransitionPlan(OrderEvent.FORCE_SET_STATUS.value, current, target, values, details)


def plan_admin_assignment(order, driver_id: str, now: Optional[datetime] = None) -> Optional[TransitionPlan]:
    """Admin assignment may replace a driver; returns None when nothing changes"""
    current = OrderStatus(order.status)
    now = now or datetime.now()

    if current.is_terminal:
        raise InvalidTransition(current.value, ADMIN_ASSIGN_EVENT, "order is already in a terminal state")
    if order.driver_id == driver_id:
        return None

    values: Dict[str, Any] = {"driver_id": driver_id}
    target = current
    if current == OrderStatus.PENDING:
        target = OrderStatus.ASSIGNED
        values["status"] = target.value
        values["assigned_at"] = now

    details = {"driver_id": driver_id, "previous_driver_id": order.driver_id}
    return TransitionPlan(ADMIN_ASSIGN_EVENT, current, target, values, details)


def _serialize(value):
    if isinstance(value, datetime):
        return value.isoformat()
    return value
