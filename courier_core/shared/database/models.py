# courier_core/shared/database/models.py
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text,
    Numeric, ForeignKey, JSON, Index, func
)
from sqlalchemy.orm import relationship, declarative_base
from datetime import datetime
import uuid

from courier_core.shared.schemas.enums import (
    UserRole, OrderStatus, PaymentStatus
)

Base = declarative_base()


def generate_uuid() -> str:
    return str(uuid.uuid4())


# =====================================================
# TIMESTAMP MIXIN
# =====================================================
class TimestampMixin:
    """Adds created_at and updated_at columns"""
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())
    updated_at = Column(DateTime, nullable=False, server_default=func.current_timestamp(), onupdate=func.current_timestamp())


# =====================================================
# USERS
# =====================================================

class User(Base, TimestampMixin):
    """Customer, driver or administrator"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(20), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.CUSTOMER.value)
    is_active = Column(Boolean, nullable=False, default=True)

    # Relationships
    orders = relationship("Order", back_populates="customer", foreign_keys="Order.customer_id")
    deliveries = relationship("Order", back_populates="driver", foreign_keys="Order.driver_id")

    @property
    def is_driver(self) -> bool:
        return self.role == UserRole.DRIVER.value

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


# =====================================================
# ORDERS
# =====================================================

class Order(Base):
    """A single delivery request from pickup to dropoff"""
    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_status_created_at", "status", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    customer_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    driver_id = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)

    # Route snapshot from the mapping provider
    pickup_address = Column(String(500), nullable=False)
    dropoff_address = Column(String(500), nullable=False)
    distance_km = Column(Numeric(10, 3), nullable=False)
    eta_minutes = Column(Integer, nullable=False)

    # Package
    size = Column(String(20), nullable=False)
    weight = Column(String(20), nullable=False)
    fragile = Column(Boolean, nullable=False, default=False)
    speed = Column(String(20), nullable=False)
    instructions = Column(Text)

    # Commercial
    cost = Column(Numeric(12, 3), nullable=False)
    payment_responsibility = Column(String(20), nullable=False)
    payment_method = Column(String(20), nullable=False)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    amount_collected = Column(Numeric(12, 3))
    paid_at = Column(DateTime)

    # Lifecycle
    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value, index=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now)
    assigned_at = Column(DateTime)
    picked_up_at = Column(DateTime)
    delivered_at = Column(DateTime)
    cancelled_at = Column(DateTime)
    cancel_reason = Column(Text)

    # Delivery proof
    delivery_photo_ref = Column(String(1000))
    delivery_notes = Column(Text)

    # Relationships
    customer = relationship("User", back_populates="orders", foreign_keys=[customer_id])
    driver = relationship("User", back_populates="deliveries", foreign_keys=[driver_id])
    events = relationship("OrderEventLog", back_populates="order", order_by="OrderEventLog.id")


class OrderEventLog(Base):
    """Append-only history of committed lifecycle writes"""
    __tablename__ = "order_events"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    event = Column(String(50), nullable=False)
    from_status = Column(String(20))
    to_status = Column(String(20), nullable=False)
    actor_id = Column(String(36), ForeignKey("users.id"))
    actor_role = Column(String(20))
    details = Column(JSON)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    # Relationships
    order = relationship("Order", back_populates="events")
    actor = relationship("User", foreign_keys=[actor_id])


# =====================================================
# DRIVER INVITE CODES
# =====================================================

class DriverInviteCode(Base):
    """One-time code gating the driver role"""
    __tablename__ = "driver_invite_codes"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    code = Column(String(64), nullable=False, unique=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    used_at = Column(DateTime)
    used_by = Column(String(36), ForeignKey("users.id"))
    created_by = Column(String(36), ForeignKey("users.id"))
    notes = Column(Text)
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())

    # Relationships
    used_by_user = relationship("User", foreign_keys=[used_by])
    created_by_user = relationship("User", foreign_keys=[created_by])

    @property
    def is_valid(self) -> bool:
        return bool(self.is_active) and self.used_at is None
