# courier_core/modules/users/__init__.py
"""
Users module - accounts for customers, drivers and administrators

Signup normalizes Canadian phone numbers, rejects duplicate email or phone,
and optionally consumes a driver invite code atomically with account creation.
"""

from .service import UserService, normalize_phone
from .repository import UserRepository

__all__ = [
    "UserService",
    "UserRepository",
    "normalize_phone"
]
