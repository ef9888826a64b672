# courier_core/modules/courier/__init__.py
"""
Courier module - driver operations

- Browse the open board of pending orders
- Accept an order (first accept wins)
- Confirm pickup, start transit, confirm delivery
- Collect payment from the responsible party
- Upload proof-of-delivery photos

Architecture:
- router.py: driver endpoints
- service.py: orchestration over orders, assignment and payments
- schemas.py: request/response models
"""

from .router import router
from .service import CourierService

__all__ = [
    "router",
    "CourierService"
]
