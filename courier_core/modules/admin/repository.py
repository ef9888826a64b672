# courier_core/modules/admin/repository.py
from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import Dict
from decimal import Decimal

from courier_core.shared.database.models import Order, User
from courier_core.shared.schemas.enums import OrderStatus, PaymentStatus, UserRole

class AdminRepository:
    def __init__(self, db: Session):
        self.db = db

    def count_orders_by_status(self) -> Dict[str, int]:
        rows = self.db.query(Order.status, func.count(Order.id)).group_by(Order.status).all()
        counts = {status.value: 0 for status in OrderStatus}
        counts.update({status: count for status, count in rows})
        return counts

    def count_orders_by_payment_status(self) -> Dict[str, int]:
        rows = self.db.query(Order.payment_status, func.count(Order.id)).group_by(Order.payment_status).all()
        counts = {status.value: 0 for status in PaymentStatus}
        counts.update({status: count for status, count in rows})
        return counts

    def count_unassigned_pending(self) -> int:
        return self.db.query(func.count(Order.id)).filter(
            Order.status == OrderStatus.PENDING.value,
            Order.driver_id.is_(None)
        ).scalar() or 0

    def total_collected(self) -> Decimal:
        total = self.db.query(func.sum(Order.amount_collected)).filter(
            Order.payment_status == PaymentStatus.PAID.value
        ).scalar()
        return Decimal(str(total)) if total is not None else Decimal("0")

    def count_active_drivers(self) -> int:
        return self.db.query(func.count(User.id)).filter(
            User.role == UserRole.DRIVER.value,
            User.is_active.is_(True)
        ).scalar() or 0
