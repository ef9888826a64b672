# courier_core/modules/admin/service.py
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session
import logging

from courier_core.shared.database.models import DriverInviteCode, Order, User
from courier_core.shared.schemas.enums import OrderStatus, UserRole
from courier_core.modules.assignment.service import AssignmentService
from courier_core.modules.orders.service import OrderService
from courier_core.modules.orders.projections import OrderQueryService
from courier_core.modules.orders.schemas import OrderListFilter, OrderSort
from courier_core.modules.invite_codes.service import InviteCodeService
from courier_core.modules.users.service import UserService
from .repository import AdminRepository

logger = logging.getLogger(__name__)

class AdminService:
    """Administrative operations over orders, users and invite codes"""

    def __init__(self, db: Session):
        self.db = db
        self.repository = AdminRepository(db)

    # ==================== ORDERS ====================

    async def assign_driver(self, order_id: str, driver_id: str, admin: User,
                            expected_version: Optional[int] = None) -> Order:
        return await AssignmentService(self.db).admin_assign_driver(order_id, driver_id, admin, expected_version)

    async def force_status(self, order_id: str, target_status: OrderStatus, admin: User,
                           reason: Optional[str] = None, expected_version: Optional[int] = None) -> Order:
        logger.warning(f"🛠️ Admin {admin.id} forcing order {order_id} to {OrderStatus(target_status).value}")
        return await OrderService(self.db).force_set_status(order_id, target_status, admin, expected_version, reason)

    def list_orders(self, admin: User, list_filter: OrderListFilter, sort: OrderSort,
                    search: Optional[str] = None, status: Optional[OrderStatus] = None,
                    customer_id: Optional[str] = None, driver_id: Optional[str] = None) -> List[Order]:
        return OrderQueryService(self.db).list_orders(
            admin, list_filter, sort, search, status, customer_id, driver_id
        )

    def dashboard(self) -> Dict[str, Any]:
        by_status = self.repository.count_orders_by_status()
        return {
            "orders_by_status": by_status,
            "payments_by_status": self.repository.count_orders_by_payment_status(),
            "total_orders": sum(by_status.values()),
            "unassigned_pending": self.repository.count_unassigned_pending(),
            "collected_amount": self.repository.total_collected(),
            "active_drivers": self.repository.count_active_drivers(),
        }

    # ==================== USERS ====================

    def list_users(self, role: Optional[UserRole] = None) -> List[User]:
        return UserService(self.db).list_users(role)

    # ==================== INVITE CODES ====================

    def create_invite_code(self, code: str, admin: User, notes: Optional[str] = None) -> DriverInviteCode:
        return InviteCodeService(self.db).create(code, admin.id, notes)

    def list_invite_codes(self, only_valid: bool = False) -> List[DriverInviteCode]:
        return InviteCodeService(self.db).list_codes(only_valid)

    def deactivate_invite_code(self, code_id: str) -> DriverInviteCode:
        return InviteCodeService(self.db).deactivate(code_id)
