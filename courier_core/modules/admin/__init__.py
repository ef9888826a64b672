# courier_core/modules/admin/__init__.py
"""
Admin module - operations console

- Assign or replace the driver of an order
- Override an order status (bypasses the payment gate, audited)
- List every order with the shared filters and sorts
- List users by role
- Issue, list and deactivate driver invite codes
- Dashboard counters

Architecture:
- router.py: FastAPI endpoints
- service.py: business logic
- repository.py: aggregate queries
- schemas.py: request/response models
"""

from .router import router as admin_router
from .service import AdminService
from .repository import AdminRepository

__all__ = [
    "admin_router",
    "AdminService",
    "AdminRepository"
]
