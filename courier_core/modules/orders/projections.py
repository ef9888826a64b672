# courier_core/modules/orders/projections.py
from typing import List, Optional
from sqlalchemy.orm import Session

from courier_core.core.exceptions import PermissionDenied, ValidationError
from courier_core.shared.database.models import Order, User
from courier_core.shared.schemas.enums import OrderStatus, UserRole
from .repository import OrderRepository, ACTIVE_DRIVER_STATUSES
from .schemas import OrderListFilter, OrderSort

class OrderQueryService:
    """Read-only, role-scoped views over the order store.

    Views are rebuilt from the store on every call; nothing is cached
    between requests.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repository = OrderRepository(db)

    def list_orders(
        self,
        actor: User,
        list_filter: OrderListFilter = OrderListFilter.ALL,
        sort: OrderSort = OrderSort.NEWEST,
        search: Optional[str] = None,
        status: Optional[OrderStatus] = None,
        customer_id: Optional[str] = None,
        driver_id: Optional[str] = None,
    ) -> List[Order]:
        criteria = self._criteria_for(actor, OrderListFilter(list_filter), status, customer_id, driver_id)
        return self.repository.search_orders(search=search, sort=OrderSort(sort).value, **criteria)

    def available_orders(self, sort: OrderSort = OrderSort.NEWEST) -> List[Order]:
        return self.repository.search_orders(
            statuses=[OrderStatus.PENDING.value], unassigned_only=True, sort=sort.value
        )

    def driver_active_orders(self, driver_id: str) -> List[Order]:
        return self.repository.search_orders(driver_id=driver_id, statuses=list(ACTIVE_DRIVER_STATUSES))

    def driver_completed_orders(self, driver_id: str) -> List[Order]:
        return self.repository.search_orders(driver_id=driver_id, statuses=[OrderStatus.DELIVERED.value])

    def _criteria_for(self, actor: User, list_filter: OrderListFilter, status: Optional[OrderStatus],
                      customer_id: Optional[str], driver_id: Optional[str]) -> dict:
        criteria: dict = {}

        if list_filter == OrderListFilter.BY_STATUS:
            if status is None:
                raise ValidationError("status is required for the by_status filter")
        if status is not None:
            criteria["statuses"] = [OrderStatus(status).value]

        if list_filter == OrderListFilter.BY_CUSTOMER:
            if not customer_id and actor.role != UserRole.CUSTOMER.value:
                raise ValidationError("customer_id is required for the by_customer filter")
            criteria["customer_id"] = customer_id or actor.id
        elif list_filter == OrderListFilter.BY_DRIVER:
            if not driver_id and actor.role != UserRole.DRIVER.value:
                raise ValidationError("driver_id is required for the by_driver filter")
            criteria["driver_id"] = driver_id or actor.id
        elif list_filter == OrderListFilter.AVAILABLE:
            criteria["statuses"] = [OrderStatus.PENDING.value]
            criteria["unassigned_only"] = True
        elif list_filter == OrderListFilter.DRIVER_ACTIVE:
            criteria["driver_id"] = driver_id or actor.id
            criteria["statuses"] = list(ACTIVE_DRIVER_STATUSES)
        elif list_filter == OrderListFilter.DRIVER_COMPLETED:
            criteria["driver_id"] = driver_id or actor.id
            criteria["statuses"] = [OrderStatus.DELIVERED.value]

        # Scope to what the actor may see
        if actor.role == UserRole.CUSTOMER.value:
            if criteria.get("customer_id", actor.id) != actor.id or "driver_id" in criteria:
                raise PermissionDenied("Customers can only list their own orders")
            if list_filter == OrderListFilter.AVAILABLE:
                raise PermissionDenied("Customers cannot browse the driver board")
            criteria["customer_id"] = actor.id
        elif actor.role == UserRole.DRIVER.value:
            if criteria.get("driver_id", actor.id) != actor.id or "customer_id" in criteria:
                raise PermissionDenied("Drivers can only list their own orders and the open board")
            if list_filter in (OrderListFilter.ALL, OrderListFilter.BY_STATUS):
                criteria["visible_to_driver"] = actor.id

        return criteria
