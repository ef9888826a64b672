# courier_core/modules/orders/__init__.py
"""
Orders module - delivery order lifecycle

- Order creation with the delivery cost frozen at confirmation
- Lifecycle state machine with payment gated pickup and delivery
- Compare-and-swap order store with status history
- Role-scoped order listings

Architecture:
- router.py: order endpoints
- service.py: lifecycle operations
- state_machine.py: transition rules
- pricing.py: cost formula
- projections.py: read-only views
- repository.py: order store
- schemas.py: request/response models
"""

from .router import router
from .service import OrderService
from .projections import OrderQueryService
from .repository import OrderRepository

__all__ = [
    "router",
    "OrderService",
    "OrderQueryService",
    "OrderRepository"
]
