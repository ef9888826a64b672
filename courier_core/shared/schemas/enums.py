# courier_core/shared/schemas/enums.py

"""
Enumerations shared by the database models, the services and the API schemas.

Values are what gets stored in the database and sent over the wire.
"""

from enum import Enum


class UserRole(str, Enum):
    """Roles supported by the marketplace"""
    CUSTOMER = "customer"
    DRIVER = "driver"
    ADMIN = "admin"


class OrderStatus(str, Enum):
    """Lifecycle states of an order"""
    PENDING = "pending"
    ASSIGNED = "assigned"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


class OrderEvent(str, Enum):
    """Events accepted by the order state machine"""
    ACCEPT = "accept"
    MARK_PICKED_UP = "mark_picked_up"
    START_TRANSIT = "start_transit"
    MARK_DELIVERED = "mark_delivered"
    CANCEL = "cancel"
    FORCE_SET_STATUS = "force_set_status"


class PackageSize(str, Enum):
    SMALL = "Small"
    MEDIUM = "Medium"
    LARGE = "Large"


class WeightBucket(str, Enum):
    """Weight buckets offered when the order is placed"""
    UNDER_5KG = "< 5kg"
    FROM_5_TO_20KG = "5–20kg"
    FROM_20_TO_50KG = "20–50kg"
    OVER_50KG = "> 50kg"

    @classmethod
    def _missing_(cls, value):
        # Clients type a plain hyphen more often than an en dash
        if isinstance(value, str):
            normalized = value.strip().replace("-", "–")
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class DeliverySpeed(str, Enum):
    STANDARD = "Standard"
    EXPRESS = "Express"
    SAME_DAY = "Same-day"


class PaymentResponsibility(str, Enum):
    """Which party pays for the delivery"""
    SENDER = "sender"
    RECEIVER = "receiver"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"
