# courier_core/modules/orders/repository.py
from sqlalchemy.orm import Session, aliased
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import and_, or_, update, desc, asc
from typing import List, Dict, Any, Optional
from datetime import datetime
import logging

from courier_core.shared.database.models import Order, OrderEventLog, User
from courier_core.shared.schemas.enums import OrderStatus

logger = logging.getLogger(__name__)

ACTIVE_DRIVER_STATUSES = (
    OrderStatus.ASSIGNED.value,
    OrderStatus.PICKED_UP.value,
    OrderStatus.IN_TRANSIT.value,
)

class OrderRepository:
    """Order store.

    Every guarded write goes through ``apply_transition``: a single
    ``UPDATE ... WHERE`` on the order row that only matches when the row
    still holds the values the caller observed. The status history row is
    inserted in the same transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, order_id: str) -> Optional[Order]:
        return self.db.query(Order).filter(Order.id == order_id).first()

    def create(self, values: Dict[str, Any], actor: User) -> Order:
        """Insert a new order together with its creation event"""
        now = datetime.now()
        order = Order(
            **values,
            status=OrderStatus.PENDING.value,
            version=1,
            created_at=now,
            updated_at=now,
        )
        try:
            self.db.add(order)
            self.db.flush()
            self.db.add(OrderEventLog(
                order_id=order.id,
                event="create",
                from_status=None,
                to_status=OrderStatus.PENDING.value,
                actor_id=actor.id,
                actor_role=actor.role,
                details={"cost": str(order.cost)},
                created_at=now,
            ))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(order)
        return order

    def compare_and_set(self, order_id: str, expected: Dict[str, Any], values: Dict[str, Any]) -> bool:
        """Write ``values`` only if the row still matches ``expected``. Does not commit."""
        conditions = [Order.id == order_id]
        for column_name, expected_value in expected.items():
            column = getattr(Order, column_name)
            if expected_value is None:
                conditions.append(column.is_(None))
            else:
                conditions.append(column == expected_value)

        stmt = (
            update(Order)
            .where(and_(*conditions))
            .values(**values, version=Order.version + 1, updated_at=datetime.now())
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.rowcount == 1

    def apply_transition(
        self,
        order_id: str,
        expected: Dict[str, Any],
        values: Dict[str, Any],
        event: str,
        from_status: Optional[str],
        to_status: str,
        actor: Optional[User],
        details: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Compare-and-swap the order row and log the event; False when the row moved on"""
        try:
            if not self.compare_and_set(order_id, expected, values):
                self.db.rollback()
                return False

            self.db.add(OrderEventLog(
                order_id=order_id,
                event=event,
                from_status=from_status,
                to_status=to_status,
                actor_id=actor.id if actor else None,
                actor_role=actor.role if actor else None,
                details=details or {},
                created_at=datetime.now(),
            ))
            self.db.commit()
            return True
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def get_history(self, order_id: str) -> List[OrderEventLog]:
        return self.db.query(OrderEventLog).filter(
            OrderEventLog.order_id == order_id
        ).order_by(asc(OrderEventLog.id)).all()

    def search_orders(
        self,
        customer_id: Optional[str] = None,
        driver_id: Optional[str] = None,
        statuses: Optional[List[str]] = None,
        unassigned_only: bool = False,
        visible_to_driver: Optional[str] = None,
        search: Optional[str] = None,
        sort: str = "newest",
    ) -> List[Order]:
        """Read-only projection over the order store"""
        customer = aliased(User)
        driver = aliased(User)

        query = self.db.query(Order).join(
            customer, Order.customer_id == customer.id
        ).outerjoin(
            driver, Order.driver_id == driver.id
        )

        if customer_id:
            query = query.filter(Order.customer_id == customer_id)
        if driver_id:
            query = query.filter(Order.driver_id == driver_id)
        if statuses:
            query = query.filter(Order.status.in_(statuses))
        if unassigned_only:
            query = query.filter(Order.driver_id.is_(None))
        if visible_to_driver:
            # Drivers see the open board plus their own orders
            query = query.filter(or_(
                and_(Order.status == OrderStatus.PENDING.value, Order.driver_id.is_(None)),
                Order.driver_id == visible_to_driver,
            ))

        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                Order.pickup_address.ilike(pattern),
                Order.dropoff_address.ilike(pattern),
                customer.full_name.ilike(pattern),
                driver.full_name.ilike(pattern),
            ))

        sort_columns = {
            "newest": [desc(Order.created_at)],
            "oldest": [asc(Order.created_at)],
            "status": [asc(Order.status), desc(Order.created_at)],
            "cost": [desc(Order.cost), desc(Order.created_at)],
            "customer": [asc(customer.full_name), desc(Order.created_at)],
        }
        query = query.order_by(*sort_columns.get(sort, sort_columns["newest"]))

        results = query.all()
        logger.debug(f"Order projection returned {len(results)} rows (sort={sort})")
        return results
