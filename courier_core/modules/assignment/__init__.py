# courier_core/modules/assignment/__init__.py
"""
Assignment module - matching orders to drivers

- Drivers accept pending orders, first accept wins
- Administrators may assign or replace the driver of an open order

The endpoints live in the courier and admin modules.
"""

from .service import AssignmentService

__all__ = [
    "AssignmentService"
]
